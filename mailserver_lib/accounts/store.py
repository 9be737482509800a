"""In-memory account table backed by a ``postfix-accounts.cf`` file.

The file holds one ``username|{SHA512-CRYPT}$6$...`` record per line. The
store never writes the file on its own: mutations only emit ``modified``
and persisting is left to whoever listens (see `mailserver_lib.sync`).
"""
from __future__ import annotations
import hashlib
import logging
import os
import stat
from pathlib import Path
from threading import RLock
from typing import Dict, List, Optional

from .errors import AuthenticationError, NoUserError, UserExistsError
from .events import AccountEvent, EventEmitter, Listener
from .hashing import HashCodec

logger = logging.getLogger(__name__)

SEPARATOR = '|'


def parse_accounts(contents: str) -> Dict[str, str]:
    """Parse file contents into an ordered ``username -> hash`` mapping.

    Lines without a separator (blank lines, a trailing newline) are skipped.
    Later duplicates of a username replace earlier ones.
    """
    accounts: Dict[str, str] = {}
    for line in contents.splitlines():
        if SEPARATOR not in line:
            continue
        username, tagged_hash = line.split(SEPARATOR, 1)
        accounts[username] = tagged_hash.strip()
    return accounts


def serialize_accounts(accounts: Dict[str, str]) -> str:
    return ''.join(f'{username}{SEPARATOR}{tagged_hash}\n' for username, tagged_hash in accounts.items())


def _digest(data: Optional[bytes]) -> Optional[str]:
    if data is None:
        return None
    return hashlib.sha256(data).hexdigest()


class AccountStore:
    """Owns the ``username -> tagged hash`` table of one accounts file.

    All operations hold a re-entrant lock, including the listeners of the
    events they emit. A ``modified`` listener that calls `save()` therefore
    persists the change before any other thread can mutate or reload.
    """

    def __init__(
        self,
        filename: str | os.PathLike,
        accounts: Optional[Dict[str, str]] = None,
        codec: Optional[HashCodec] = None,
    ) -> None:
        self._filename = os.fspath(filename)
        # I/O goes to the symlink target so a linked accounts file stays linked
        self._path = Path(os.path.realpath(self._filename))
        self._accounts: Dict[str, str] = dict(accounts or {})
        self._codec = codec or HashCodec()
        self._events = EventEmitter()
        self._lock = RLock()
        # sha256 of the file content last read or written, None if absent
        self._digest: Optional[str] = None

    @classmethod
    def load(cls, filename: str | os.PathLike, codec: Optional[HashCodec] = None) -> 'AccountStore':
        """Create a store populated from `filename` (empty if it does not exist)."""
        return cls(filename, codec=codec).reload()

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def accounts(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._accounts)

    def usernames(self) -> List[str]:
        with self._lock:
            return list(self._accounts)

    def __contains__(self, username: object) -> bool:
        with self._lock:
            return username in self._accounts

    def __len__(self) -> int:
        # no lock: len() of a dict is atomic and /health must not wait on a save
        return len(self._accounts)

    # events

    def on(self, event: AccountEvent | str, listener: Listener) -> None:
        self._events.on(event, listener)

    def off(self, event: AccountEvent | str, listener: Listener) -> None:
        self._events.off(event, listener)

    def listener_count(self, event: AccountEvent | str) -> int:
        return self._events.listener_count(event)

    # persistence

    def _read_bytes(self) -> Optional[bytes]:
        try:
            with open(self._path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            return None

    def _write_bytes(self, data: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + '.tmp')
        with open(tmp, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        try:
            os.chmod(tmp, stat.S_IMODE(os.stat(self._path).st_mode))
        except FileNotFoundError:
            pass
        tmp.replace(self._path)

    def reload(self) -> 'AccountStore':
        """Replace the whole table with the current file contents.

        Unsaved in-memory changes are discarded. A missing file yields an
        empty table; other I/O errors propagate.
        """
        with self._lock:
            raw = self._read_bytes()
            if raw is None:
                logger.warning('File "%s" could not be found, creating empty accounts', self._filename)
                contents = ''
            else:
                contents = raw.decode('utf-8')
            self._accounts = parse_accounts(contents)
            self._digest = _digest(raw)
            logger.info('Accounts loaded from "%s" (%d accounts)', self._filename, len(self._accounts))
            self._events.emit(AccountEvent.LOADED, self._filename)
        return self

    def reload_if_changed(self) -> bool:
        """Reload only if the file differs from what was last read or written.

        Returns True when a reload happened.
        """
        with self._lock:
            current = _digest(self._read_bytes())
            if current == self._digest:
                logger.debug('Accounts file "%s" unchanged, skipping reload', self._filename)
                return False
            self.reload()
            return True

    def save(self) -> 'AccountStore':
        with self._lock:
            data = serialize_accounts(self._accounts).encode('utf-8')
            self._write_bytes(data)
            self._digest = _digest(data)
            logger.info('Accounts saved to "%s" (%d accounts)', self._filename, len(self._accounts))
            self._events.emit(AccountEvent.SAVED, self._filename)
        return self

    # mutations

    def add_user(self, username: str, password: str) -> 'AccountStore':
        if not username or SEPARATOR in username or '\n' in username:
            raise ValueError(f'invalid username {username!r}')
        with self._lock:
            if username in self._accounts:
                raise UserExistsError(username)
            self._accounts[username] = self._codec.hash(password)
            logger.info('Added user %s', username)
            self._events.emit(AccountEvent.MODIFIED)
        return self

    def remove_user(self, username: str) -> 'AccountStore':
        with self._lock:
            if username not in self._accounts:
                raise NoUserError(username)
            del self._accounts[username]
            logger.info('Removed user %s', username)
            self._events.emit(AccountEvent.MODIFIED)
        return self

    def update_user(self, username: str, password: str) -> 'AccountStore':
        with self._lock:
            if username not in self._accounts:
                raise NoUserError(username)
            self._accounts[username] = self._codec.hash(password)
            logger.info('Updated password of user %s', username)
            self._events.emit(AccountEvent.MODIFIED)
        return self

    # verification

    def verify_user_password(self, username: str, password: str) -> bool:
        with self._lock:
            stored = self._accounts.get(username)
            if stored is None:
                raise NoUserError(username)
            return self._codec.verify(password, stored)

    def assert_user_password(self, username: str, password: str) -> None:
        """Raise `AuthenticationError` unless `password` matches `username`.

        Emits ``authFailed`` with the username on failure. A corrupt stored
        hash raises `MalformedHashError` instead.
        """
        with self._lock:
            stored = self._accounts.get(username)
            if stored is None or not self._codec.verify(password, stored):
                logger.warning('Authentication failed for user %s', username)
                self._events.emit(AccountEvent.AUTH_FAILED, username)
                raise AuthenticationError(username)

    def verify_and_update_user_password(self, username: str, old_password: str, new_password: str) -> 'AccountStore':
        with self._lock:
            self.assert_user_password(username, old_password)
            return self.update_user(username, new_password)
