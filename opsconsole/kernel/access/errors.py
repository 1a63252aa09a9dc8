"""
Exceptions raised by the administrator side of the access engine.

The decision path (loader, resolver, gate) never raises these; it maps
every failure to a narrower outcome instead.
"""

import uuid


class AccessEngineError(Exception):
    """Base class for access engine errors."""


class AccountNotFoundError(AccessEngineError, LookupError):
    """The target account has no profile row."""

    def __init__(self, account_id: uuid.UUID):
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class PermissionUpdateError(AccessEngineError):
    """An administrator edit could not be persisted."""

    def __init__(self, account_id: uuid.UUID, reason: str):
        super().__init__(f"Failed to update account {account_id}: {reason}")
        self.account_id = account_id
        self.reason = reason


class AdminRequiredError(AccessEngineError, PermissionError):
    """The acting account is not an active administrator."""
