"""Entry point: serve the password-change API for a docker-mailserver config dir.

    python3 mailserver.py -c /tmp/docker-mailserver -p 3000

The accounts file is `<config-dir>/postfix-accounts.cf`. uvicorn handles
SIGINT/SIGTERM; the app lifespan then stops the file watch.
"""
import sys

from mailserver_lib.logging_config import configure_logging
from mailserver_lib.main import create_app
from mailserver_lib.setup import build_config


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    try:
        config = build_config(argv)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    logger = configure_logging(config.log_level)
    logger.info("Starting mailserver management on %s:%d for %s", config.host, config.port, config.accounts_file)

    app = create_app(config)

    import uvicorn
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)
    logger.info("Shutdown complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
