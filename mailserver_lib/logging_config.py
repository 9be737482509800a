from __future__ import annotations
import logging
from pathlib import Path
import yaml
from typing import Optional

DEFAULT_LOG_LEVEL = logging.INFO
LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s]: %(message)s'


def _level_from_config(config_path: Optional[Path]) -> Optional[str]:
    if config_path is None or not config_path.exists():
        return None
    try:
        with config_path.open('r', encoding='utf-8') as _f:
            _cfg = yaml.safe_load(_f) or {}
    except (OSError, yaml.YAMLError):
        # The config loader reports parse errors itself; keep the default here.
        return None
    _lvl = _cfg.get('log_level') if isinstance(_cfg, dict) else None
    return _lvl if isinstance(_lvl, str) else None


def configure_logging(level: Optional[str] = None, config_path: Optional[Path] = None) -> logging.Logger:
    """Configure root logging for the application.

    The level is taken from `level`, else from `log_level` in the YAML server
    config at `config_path`, else INFO. Returns a module logger for the caller.
    """
    name = level or _level_from_config(config_path)
    numeric = getattr(logging, name.upper(), None) if name else None
    log_level = numeric if isinstance(numeric, int) else DEFAULT_LOG_LEVEL

    # Reconfigure root handlers to use the selected level and format
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)
    logging.log(100, f'[mailserver]: Log level set to: {logging.getLevelName(log_level)}')

    # watchdog logs every inotify event at DEBUG
    logging.getLogger('watchdog').setLevel(max(log_level, logging.INFO))
    return logger
