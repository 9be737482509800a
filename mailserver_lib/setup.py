"""Command line and YAML configuration for the mailserver management server.

Values are merged in this order (later wins): `Config` defaults, the
optional YAML server config, command line options.
"""
from __future__ import annotations
import argparse
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional
import yaml

from mailserver_lib.main import Config

logger = logging.getLogger(__name__)

# YAML key -> Config field type
SERVER_CONFIG_KEYS = {
    'host': str,
    'port': int,
    'use_polling': bool,
    'debounce_seconds': float,
    'polling_interval': float,
    'log_level': str,
    'watch': bool,
    'accounts_filename': str,
}


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mailserver",
        usage="%(prog)s -p [port] -c [config-dir]",
        description="HTTP service for changing docker-mailserver account passwords.",
    )
    p.add_argument("-p", "--port", type=int, default=None, help="The listening port for the http-server (default: 3000)")
    p.add_argument(
        "-c", "--config-dir", required=True,
        help="The directory containing the docker-mailserver configuration (must be writable)",
    )
    p.add_argument("--host", default=None, help="Interface to bind to (default: 0.0.0.0)")
    p.add_argument("--server-config", type=Path, default=None, help="Optional YAML file with server settings")
    p.add_argument("--use-polling", action="store_const", const=True, default=None,
                   help="Poll the accounts file instead of using OS notifications")
    p.add_argument("--debounce", dest="debounce_seconds", type=float, default=None,
                   help="Seconds to wait for writes to settle before reloading")
    p.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ...)")
    return p


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = get_parser()
    if argv is not None:
        argv = list(argv)
    return parser.parse_args(argv)


def load_server_config(path: Optional[str | Path]) -> Dict[str, Any]:
    """Read the YAML server config at `path`.

    A missing file is an empty config. Raises `ValueError` for files that do
    not parse, are not a mapping or hold values of the wrong type.
    """
    if path is None:
        return {}
    path = Path(path)
    if not path.exists():
        return {}
    try:
        with path.open('r', encoding='utf-8') as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"invalid server config {path}: parse error") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"invalid server config {path}: expected mapping")

    out: Dict[str, Any] = {}
    for key, value in data.items():
        expected = SERVER_CONFIG_KEYS.get(key)
        if expected is None:
            logger.warning('Ignoring unknown server config key %r in %s', key, path)
            continue
        # ints are acceptable where floats are expected, bools are not ints here
        if expected is float and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ValueError(f"invalid server config {path}: {key} must be {expected.__name__}")
        out[key] = value
    return out


def build_config(argv: Optional[Iterable[str]] = None) -> Config:
    args = parse_args(argv)
    settings = load_server_config(args.server_config)
    for key in ('host', 'port', 'use_polling', 'debounce_seconds', 'log_level'):
        value = getattr(args, key)
        if value is not None:
            settings[key] = value
    return Config(config_dir=args.config_dir, **settings)
