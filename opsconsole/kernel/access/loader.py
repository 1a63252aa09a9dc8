"""
Account loading.

Fetches role, status and stored permissions for an identity and resolves
them into an ``Account``. The three fetches are independent and run
concurrently; ``load`` only returns once all of them have finished.

Missing records are a valid state and failures are recovered locally:

    role         -> member
    status       -> pending
    permissions  -> Absent (the policy baseline)

so a broken store can only ever narrow what a user sees.
"""

import asyncio
import uuid
from typing import Awaitable, Optional, Protocol, TypeVar

from opsconsole.kernel.access.account import UNPROVISIONED, Account, AccountProfile, Principal
from opsconsole.kernel.access.policy import DEFAULT_POLICY, AccessPolicy
from opsconsole.kernel.access.resolver import build_account
from opsconsole.kernel.access.stored import ABSENT, Absent, Legacy, NewFormat, StoredPermissions
from opsconsole.kernel.models.account import AccountRole, AccountStatus
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class AccessStore(Protocol):
    """Storage collaborator. None means the record does not exist."""

    async def get_role(self, account_id: uuid.UUID) -> Optional[AccountRole]:
        ...

    async def get_status(self, account_id: uuid.UUID) -> Optional[AccountStatus]:
        ...

    async def get_permissions(self, account_id: uuid.UUID) -> StoredPermissions:
        ...


class AccountLoader:
    """Loads and resolves accounts from an AccessStore."""

    def __init__(self, store: AccessStore, policy: AccessPolicy = DEFAULT_POLICY):
        self.store = store
        self.policy = policy

    async def fetch_role(self, account_id: uuid.UUID) -> AccountRole:
        role = await self._guarded(self.store.get_role(account_id), "role", account_id)
        return role if isinstance(role, AccountRole) else UNPROVISIONED.role

    async def fetch_status(self, account_id: uuid.UUID) -> AccountStatus:
        status = await self._guarded(self.store.get_status(account_id), "status", account_id)
        return status if isinstance(status, AccountStatus) else UNPROVISIONED.status

    async def fetch_profile(self, account_id: uuid.UUID) -> AccountProfile:
        """Role and lifecycle status, defaulting to an unprovisioned member."""
        role, status = await asyncio.gather(
            self.fetch_role(account_id),
            self.fetch_status(account_id),
        )
        return AccountProfile(role=role, status=status)

    async def fetch_permissions(self, account_id: uuid.UUID) -> StoredPermissions:
        stored = await self._guarded(self.store.get_permissions(account_id), "permissions", account_id)
        return stored if isinstance(stored, (NewFormat, Legacy, Absent)) else ABSENT

    async def load(self, principal: Principal) -> Account:
        """Fetch everything for ``principal`` concurrently and resolve it."""
        profile, stored = await asyncio.gather(
            self.fetch_profile(principal.id),
            self.fetch_permissions(principal.id),
        )
        account = build_account(principal.id, profile, stored, self.policy)
        logger.debug(
            "Account resolved",
            extra={
                "account_id": str(principal.id),
                "role": account.role.value,
                "status": account.status.value,
            },
        )
        return account

    @staticmethod
    async def _guarded(fetch: Awaitable[T], kind: str, account_id: uuid.UUID) -> Optional[T]:
        """Await ``fetch``; on failure log and return None (treated as missing)."""
        try:
            return await fetch
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning(
                "Failed to fetch %s, falling back to safe default",
                kind,
                exc_info=True,
                extra={"account_id": str(account_id), "record": kind},
            )
            return None
