"""Exceptions raised by the account store.

`UserExistsError`, `NoUserError` and `AuthenticationError` are domain errors
that callers are expected to handle. `MalformedHashError` signals a corrupt
accounts file and is deliberately not an `AccountError`: it should surface
as an unexpected fault, not as a failed login.
"""
from __future__ import annotations


class AccountError(Exception):
    """Base class for account store domain errors."""


class UserExistsError(AccountError):
    def __init__(self, username: str) -> None:
        super().__init__(f'User "{username}" already exists')
        self.username = username


class NoUserError(AccountError):
    def __init__(self, username: str) -> None:
        super().__init__(f'User "{username}" does not exist')
        self.username = username


class AuthenticationError(AccountError):
    # The message is the same for unknown users and wrong passwords.
    def __init__(self, username: str | None = None) -> None:
        super().__init__('Bad username or password')
        self.username = username


class MalformedHashError(ValueError):
    """Stored hash does not have the `{SHA512-CRYPT}$6$<salt>$<digest>` shape."""
