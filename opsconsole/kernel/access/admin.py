"""
Administrator operations on accounts.

These are the only writers of status, role and permission rows. The
decision path never calls them; it observes their effect on the next
fetch.
"""

import uuid
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from opsconsole.kernel.access.account import Account, AccountProfile
from opsconsole.kernel.access.errors import (
    AccountNotFoundError,
    AdminRequiredError,
    PermissionUpdateError,
)
from opsconsole.kernel.access.policy import DEFAULT_POLICY, AccessPolicy
from opsconsole.kernel.access.resolver import build_account
from opsconsole.kernel.access.store import coerce_role, coerce_status
from opsconsole.kernel.access.stored import classify_stored
from opsconsole.kernel.models.account import (
    AccountRole,
    AccountStatus,
    Profile,
    UserRoleAssignment,
)
from opsconsole.kernel.models.permission import ALL_MODULES, AccessLevel, ModuleKey
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccountSummary:
    """Row of the user manager listing."""

    account: Account
    email: Optional[str]
    full_name: Optional[str]


def require_active_admin(actor: Account) -> None:
    """Raise AdminRequiredError unless ``actor`` is an active admin."""
    if not (actor.is_admin and actor.is_active):
        raise AdminRequiredError("Active administrator required")


class AdminService:
    """
    Account administration.

    Handles approval, blocking, role changes and permission edits.
    """

    def __init__(self, session: AsyncSession, policy: AccessPolicy = DEFAULT_POLICY):
        self.session = session
        self.policy = policy

    async def list_accounts(self) -> List[AccountSummary]:
        """All accounts with their role and resolved permissions, newest first."""
        query = (
            select(Profile, UserRoleAssignment.role)
            .outerjoin(UserRoleAssignment, UserRoleAssignment.user_id == Profile.id)
            .order_by(Profile.created_at.desc())
        )
        result = await self.session.execute(query)

        summaries = []
        for profile, role in result.all():
            account = build_account(
                profile.id,
                AccountProfile(
                    role=(coerce_role(role) if role is not None else None) or AccountRole.MEMBER,
                    status=coerce_status(profile.status) or AccountStatus.PENDING,
                ),
                classify_stored(profile.module_permissions, profile.allowed_modules),
                self.policy,
            )
            summaries.append(
                AccountSummary(account=account, email=profile.email, full_name=profile.full_name)
            )
        return summaries

    async def approve(self, account_id: uuid.UUID) -> Profile:
        """Activate a pending (or suspended) account."""
        return await self._set_status(account_id, AccountStatus.ACTIVE)

    async def block(self, account_id: uuid.UUID) -> Profile:
        """Suspend an account."""
        return await self._set_status(account_id, AccountStatus.SUSPENDED)

    async def change_role(self, account_id: uuid.UUID, role: AccountRole) -> AccountRole:
        """Set the account's role, creating the role row when missing."""
        await self._get_profile(account_id)

        result = await self.session.execute(
            select(UserRoleAssignment).where(UserRoleAssignment.user_id == account_id)
        )
        assignment = result.scalar_one_or_none()
        try:
            if assignment is None:
                self.session.add(UserRoleAssignment(user_id=account_id, role=role))
            else:
                assignment.role = role
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PermissionUpdateError(account_id, "role change failed") from e

        logger.info(
            "Account role changed",
            extra={"account_id": str(account_id), "role": role.value},
        )
        return role

    async def update_permissions(
        self,
        account_id: uuid.UUID,
        permissions: Mapping[ModuleKey, AccessLevel],
    ) -> Dict[ModuleKey, AccessLevel]:
        """
        Persist a complete new-format permission map.

        Modules missing from ``permissions`` are written with their policy
        baseline level so the stored map is always complete.
        """
        profile = await self._get_profile(account_id)

        complete = self.policy.baseline()
        complete.update(permissions)
        payload = {module.value: complete[module].value for module in ALL_MODULES}

        try:
            profile.module_permissions = payload
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PermissionUpdateError(account_id, "permission update failed") from e

        logger.info(
            "Module permissions updated",
            extra={"account_id": str(account_id), "permissions": payload},
        )
        return complete

    async def _set_status(self, account_id: uuid.UUID, status: AccountStatus) -> Profile:
        profile = await self._get_profile(account_id)
        try:
            profile.status = status
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PermissionUpdateError(account_id, "status change failed") from e

        logger.info(
            "Account status changed",
            extra={"account_id": str(account_id), "status": status.value},
        )
        return profile

    async def _get_profile(self, account_id: uuid.UUID) -> Profile:
        profile = await self.session.get(Profile, account_id)
        if profile is None:
            raise AccountNotFoundError(account_id)
        return profile
