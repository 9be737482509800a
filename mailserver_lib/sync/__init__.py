"""File <-> memory synchronization for the account store."""

from .controller import SyncController, SyncState, auto_save_load
from .watcher import FileWatcher

__all__ = ["SyncController", "SyncState", "auto_save_load", "FileWatcher"]
