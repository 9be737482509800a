"""Keep an `AccountStore` and its backing file in sync.

In-process changes are written out as soon as the store reports them
(``modified`` -> `save()`); changes made to the file by other processes are
picked up by a debounced file watch (-> `reload_if_changed()`). Reloads
compare the file content with what the store last read or wrote, so the
watch event caused by our own save does not replace the table again.
"""
from __future__ import annotations
import enum
import logging
from threading import Lock
from typing import Any, Callable, List, Optional, Tuple

from mailserver_lib.accounts.events import AccountEvent
from mailserver_lib.accounts.interfaces import AccountStoreProtocol
from .watcher import FileWatcher

logger = logging.getLogger(__name__)


class SyncState(str, enum.Enum):
    UNREGISTERED = 'unregistered'
    ACTIVE = 'active'
    CLOSED = 'closed'


class SyncController:
    def __init__(
        self,
        store: AccountStoreProtocol,
        *,
        debounce_seconds: float = 0.2,
        use_polling: bool = False,
        polling_interval: float = 1.0,
        watch: bool = True,
    ) -> None:
        self._store = store
        self.debounce_seconds = debounce_seconds
        self.use_polling = use_polling
        self.polling_interval = polling_interval
        self.watch = watch
        self._lock = Lock()
        self._state = SyncState.UNREGISTERED
        self._watcher: Optional[FileWatcher] = None
        self._subscriptions: List[Tuple[AccountEvent, Callable[..., Any]]] = []

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def store(self) -> AccountStoreProtocol:
        return self._store

    def _on_modified(self) -> None:
        self._store.save()

    def _on_saved(self, filename: str) -> None:
        logger.info('Configuration saved to "%s"', filename)

    def _on_loaded(self, filename: str) -> None:
        logger.info('Configuration loaded from "%s"', filename)
        logger.debug('Configuration is now %s', sorted(self._store.accounts))

    def _on_auth_failed(self, username: str) -> None:
        logger.debug('Authentication failure reported for %s', username)

    def _on_file_change(self) -> None:
        if self._state is not SyncState.ACTIVE:
            return
        if self._store.reload_if_changed():
            logger.info('Accounts file "%s" changed on disk, reloaded', self._store.filename)

    def _subscribe(self) -> None:
        self._subscriptions = [
            (AccountEvent.MODIFIED, self._on_modified),
            (AccountEvent.SAVED, self._on_saved),
            (AccountEvent.LOADED, self._on_loaded),
            (AccountEvent.AUTH_FAILED, self._on_auth_failed),
        ]
        for event, listener in self._subscriptions:
            self._store.on(event, listener)

    def _unsubscribe(self) -> None:
        for event, listener in self._subscriptions:
            self._store.off(event, listener)
        self._subscriptions = []

    def start(self) -> 'SyncController':
        """Subscribe to the store, write the baseline file and start watching."""
        with self._lock:
            if self._state is not SyncState.UNREGISTERED:
                raise RuntimeError(f'cannot start a sync controller in state {self._state.value}')
            self._subscribe()
            try:
                # Makes sure the file exists and matches what was loaded.
                self._store.save()
                if self.watch:
                    watcher = FileWatcher(
                        self._store.filename,
                        self._on_file_change,
                        debounce_seconds=self.debounce_seconds,
                        use_polling=self.use_polling,
                        polling_interval=self.polling_interval,
                    )
                    watcher.start()
                    self._watcher = watcher
            except Exception:
                self._unsubscribe()
                raise
            self._state = SyncState.ACTIVE
        logger.info('Synchronizing accounts with "%s"', self._store.filename)
        return self

    def close(self) -> None:
        """Stop watching and unsubscribe. Safe to call more than once."""
        with self._lock:
            if self._state is SyncState.CLOSED:
                return
            self._state = SyncState.CLOSED
            watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.stop()
        self._unsubscribe()
        logger.info('Stopped synchronizing "%s"', self._store.filename)


def auto_save_load(store: AccountStoreProtocol, **options: Any) -> SyncController:
    """Create and start a `SyncController` for `store`."""
    return SyncController(store, **options).start()
