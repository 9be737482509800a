"""SHA512-CRYPT password hashing in the Dovecot tagged format.

Hashes are stored as ``{SHA512-CRYPT}$6$<salt>$<digest>``, the format used
by docker-mailserver's ``postfix-accounts.cf`` and produced by
``doveadm pw -s SHA512-CRYPT``. The crypt(3) SHA-512 primitive itself comes
from passlib.
"""
from __future__ import annotations
import re
import secrets
from typing import Callable, Optional

from passlib.hash import sha512_crypt
from passlib.utils.binary import HASH64_CHARS

from .errors import MalformedHashError

TAG = '{SHA512-CRYPT}'
SALT_SIZE = 16
# crypt(3) default for $6$; passlib omits the rounds field at this value
DEFAULT_ROUNDS = 5000

_TAGGED_RE = re.compile(
    r'^\{SHA512-CRYPT\}(?P<crypt>\$6\$(?:rounds=(?P<rounds>\d+)\$)?(?P<salt>[^$]{0,16})\$(?P<digest>[./0-9A-Za-z]{86}))$'
)


def generate_salt(size: int = SALT_SIZE) -> str:
    return ''.join(secrets.choice(HASH64_CHARS) for _ in range(size))


def _match_tagged(value: str) -> re.Match:
    m = _TAGGED_RE.match(value.strip()) if isinstance(value, str) else None
    if not m:
        raise MalformedHashError(f'not a {TAG} hash: {value!r:.40}')
    return m


def split_tagged_hash(value: str) -> tuple[str, str]:
    """Return ``(crypt_string, salt)`` for a tagged hash.

    Raises `MalformedHashError` when `value` is not a tagged SHA512-CRYPT hash.
    """
    m = _match_tagged(value)
    return m.group('crypt'), m.group('salt')


class HashCodec:
    """Compute and verify tagged SHA512-CRYPT hashes.

    `salt_source` is called once per `hash()` and must return a salt of at
    most 16 characters from the crypt alphabet. Tests pass a constant
    source to get reproducible hashes.
    """

    def __init__(self, salt_source: Optional[Callable[[], str]] = None) -> None:
        self._salt_source = salt_source or generate_salt

    def hash(self, password: str) -> str:
        salt = self._salt_source()
        if len(salt) > SALT_SIZE or any(c not in HASH64_CHARS for c in salt):
            raise ValueError(f'invalid salt {salt!r}')
        hasher = sha512_crypt.using(salt=salt, rounds=DEFAULT_ROUNDS)
        return TAG + hasher.hash(password)

    def verify(self, password: str, tagged_hash: str) -> bool:
        """Recompute the hash of `password` with the stored salt and compare."""
        m = _match_tagged(tagged_hash)
        rounds = int(m.group('rounds')) if m.group('rounds') else DEFAULT_ROUNDS
        try:
            hasher = sha512_crypt.using(salt=m.group('salt'), rounds=rounds)
            candidate = hasher.hash(password)
        except ValueError as e:
            # passlib rejects salts or rounds outside of what crypt(3) accepts
            raise MalformedHashError(str(e)) from e
        digest = candidate.rsplit('$', 1)[1]
        return secrets.compare_digest(digest, m.group('digest'))
