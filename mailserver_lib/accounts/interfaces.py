from typing import Any, Callable, Dict, Protocol


class AccountStoreProtocol(Protocol):
    """Account store interface used by the web layer and the sync controller.

    Mirrors the public surface of `mailserver_lib.accounts.store.AccountStore`
    so tests can substitute fakes when resolving `account_store` from the
    service container.
    """

    @property
    def filename(self) -> str: ...

    @property
    def accounts(self) -> Dict[str, str]: ...

    def on(self, event: Any, listener: Callable[..., Any]) -> None: ...

    def off(self, event: Any, listener: Callable[..., Any]) -> None: ...

    def save(self) -> Any: ...

    def reload(self) -> Any: ...

    def reload_if_changed(self) -> bool: ...

    def verify_and_update_user_password(self, username: str, old_password: str, new_password: str) -> Any: ...
