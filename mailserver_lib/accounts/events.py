"""Synchronous event emitter used by the account store."""
from __future__ import annotations
import enum
import logging
from threading import Lock
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class AccountEvent(str, enum.Enum):
    LOADED = 'loaded'
    SAVED = 'saved'
    MODIFIED = 'modified'
    AUTH_FAILED = 'authFailed'


class EventEmitter:
    """Per-event listener lists.

    Listeners are called in registration order in the emitting thread. An
    exception raised by a listener stops the dispatch and propagates to the
    code that emitted the event.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._listeners: Dict[AccountEvent, List[Listener]] = {}

    def on(self, event: AccountEvent | str, listener: Listener) -> None:
        event = AccountEvent(event)
        with self._lock:
            self._listeners.setdefault(event, []).append(listener)

    def off(self, event: AccountEvent | str, listener: Listener) -> None:
        event = AccountEvent(event)
        with self._lock:
            listeners = self._listeners.get(event)
            if not listeners:
                return
            try:
                listeners.remove(listener)
            except ValueError:
                return
            if not listeners:
                self._listeners.pop(event, None)

    def listener_count(self, event: AccountEvent | str) -> int:
        with self._lock:
            return len(self._listeners.get(AccountEvent(event), ()))

    def emit(self, event: AccountEvent | str, *args: Any) -> int:
        event = AccountEvent(event)
        # Copy so listeners may unsubscribe while being called.
        with self._lock:
            listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            listener(*args)
        logger.debug('Emitted %s to %d listener(s)', event.value, len(listeners))
        return len(listeners)
