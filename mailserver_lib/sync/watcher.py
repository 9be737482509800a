"""Debounced watch of a single file using watchdog.

watchdog observes directories, so the observer is scheduled on the parent
directory and events are filtered down to the watched path. Atomic writes
(temp file renamed over the target) show up as a move onto the path and are
treated like a modification.
"""
from __future__ import annotations
import logging
import os
import threading
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

logger = logging.getLogger(__name__)

_CHANGE_EVENTS = {'modified', 'created', 'moved', 'closed'}


class _PathEventHandler(FileSystemEventHandler):
    def __init__(self, path: str, on_change: Callable[[], None]) -> None:
        self._path = path
        self._on_change = on_change

    def _matches(self, event: FileSystemEvent) -> bool:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return False
        paths = [event.src_path]
        if event.event_type == 'moved':
            paths = [getattr(event, 'dest_path', '')]
        return any(os.fsdecode(p) == self._path for p in paths if p)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if self._matches(event):
            logger.debug('Change event %s for %s', event.event_type, self._path)
            self._on_change()


class FileWatcher:
    """Call `callback` once after each burst of changes to `path`.

    Every change event restarts a `debounce_seconds` timer; the callback runs
    in the timer thread when it expires. Exceptions raised by the callback
    are logged and do not stop the watch. Once `stop()` returns the callback
    is not running and will not be called again.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        callback: Callable[[], None],
        *,
        debounce_seconds: float = 0.2,
        use_polling: bool = False,
        polling_interval: float = 1.0,
    ) -> None:
        self.path = os.path.realpath(os.fspath(path))
        self.debounce_seconds = debounce_seconds
        self.use_polling = use_polling
        self.polling_interval = polling_interval
        self._callback = callback
        self._lock = threading.Lock()
        self._callback_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._observer = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._observer is not None and not self._stopped

    def start(self) -> None:
        if self._observer is not None or self._stopped:
            raise RuntimeError('FileWatcher can only be started once')
        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        observer = PollingObserver(timeout=self.polling_interval) if self.use_polling else Observer()
        observer.schedule(_PathEventHandler(self.path, self._schedule), directory, recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info('Watching "%s" for changes (polling=%s)', self.path, self.use_polling)

    def _schedule(self) -> None:
        with self._lock:
            if self._stopped:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_seconds, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._callback_lock:
            if self._stopped:
                return
            try:
                self._callback()
            except Exception:
                logger.exception('Change handler for "%s" failed', self.path)

    def stop(self) -> None:
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()
        # wait for a callback that was already running
        with self._callback_lock:
            pass
        logger.info('Stopped watching "%s"', self.path)
