"""Application factory for the mailserver account management API.

`create_app(config)` loads the accounts file, composes the account store and
its sync controller into a service container and builds the FastAPI app.
The controller is started and closed by the app lifespan, so nothing
watches the file until the server (or a `TestClient` used as a context
manager) actually starts.

    from mailserver_lib.main import create_app, Config
    app = create_app(Config(config_dir='/tmp/docker-mailserver'))
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from mailserver_lib.accounts import AccountStore, HashCodec
from mailserver_lib.sync import SyncController

logger = logging.getLogger(__name__)

ACCOUNTS_FILENAME = 'postfix-accounts.cf'


@dataclass
class Config:
    config_dir: str = "data"
    accounts_filename: str = ACCOUNTS_FILENAME
    host: str = "0.0.0.0"
    port: int = 3000
    use_polling: bool = False
    debounce_seconds: float = 0.2
    polling_interval: float = 1.0
    log_level: Optional[str] = None
    # Disable to run without the file watch (saves still happen).
    watch: bool = True

    @property
    def accounts_file(self) -> Path:
        return Path(self.config_dir) / self.accounts_filename


def create_app(config: Config, codec: Optional[HashCodec] = None) -> FastAPI:
    """Create and return a configured FastAPI application."""
    store = AccountStore.load(config.accounts_file, codec=codec)
    controller = SyncController(
        store,
        debounce_seconds=config.debounce_seconds,
        use_polling=config.use_polling,
        polling_interval=config.polling_interval,
        watch=config.watch,
    )

    from mailserver_lib.services import ServiceContainer

    container = ServiceContainer()
    container.register_singleton("config", config)
    container.register_singleton("account_store", store)
    container.register_singleton("sync_controller", controller)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        controller.start()
        try:
            yield
        finally:
            controller.close()

    app = FastAPI(title="Mailserver Management", lifespan=lifespan)
    app.state.container = container

    from mailserver_lib.accounts.api import BAD_REQUEST_MESSAGE, error_response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info('Malformed request to %s: %s', request.url.path, exc.errors())
        return error_response(400, BAD_REQUEST_MESSAGE)

    from mailserver_lib.accounts.api import router as accounts_router
    from mailserver_lib.server.api import router as server_router

    app.include_router(accounts_router)
    app.include_router(server_router)

    return app
