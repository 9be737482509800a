from typing import Any, Dict


class ServiceContainer:
    """Registry of the services composed by `create_app`.

    Services are registered under string keys (`config`, `account_store`,
    `sync_controller`) and looked up by the route handlers.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}

    def register_singleton(self, key: str, instance: Any) -> None:
        self._singletons[key] = instance

    def __contains__(self, key: str) -> bool:
        return key in self._singletons

    def get(self, key: str) -> Any:
        try:
            return self._singletons[key]
        except KeyError:
            raise KeyError(f"No service registered for key '{key}'") from None
