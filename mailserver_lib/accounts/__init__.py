"""Account table, password hashing and the password-change endpoint."""

from .errors import (
    AccountError,
    AuthenticationError,
    MalformedHashError,
    NoUserError,
    UserExistsError,
)
from .events import AccountEvent, EventEmitter
from .hashing import HashCodec
from .store import AccountStore

__all__ = [
    "AccountError",
    "AuthenticationError",
    "MalformedHashError",
    "NoUserError",
    "UserExistsError",
    "AccountEvent",
    "EventEmitter",
    "HashCodec",
    "AccountStore",
]
