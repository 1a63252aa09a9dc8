"""
SQLAlchemy-backed access store.

Each fetch opens its own session so the loader can run the role, status
and permission queries concurrently. Values read from storage are coerced
into the engine's enums here; anything unrecognised is reported as a
missing record and narrows to the safe default upstream.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opsconsole.kernel.access.account import Principal
from opsconsole.kernel.access.stored import ABSENT, StoredPermissions, classify_stored
from opsconsole.kernel.models.account import (
    AccountRole,
    AccountStatus,
    Profile,
    UserRoleAssignment,
)
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)


def coerce_role(value: object) -> Optional[AccountRole]:
    if isinstance(value, AccountRole):
        return value
    try:
        return AccountRole(str(value).lower())
    except ValueError:
        logger.warning("Unknown role value in storage", extra={"role": str(value)})
        return None


def coerce_status(value: object) -> Optional[AccountStatus]:
    if isinstance(value, AccountStatus):
        return value
    try:
        return AccountStatus(str(value).lower())
    except ValueError:
        logger.warning("Unknown status value in storage", extra={"status": str(value)})
        return None


class SqlAccessStore:
    """AccessStore over the ``profiles`` and ``user_roles`` tables."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get_role(self, account_id: uuid.UUID) -> Optional[AccountRole]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(UserRoleAssignment.role).where(UserRoleAssignment.user_id == account_id)
            )
            role = result.scalar_one_or_none()
        return None if role is None else coerce_role(role)

    async def get_status(self, account_id: uuid.UUID) -> Optional[AccountStatus]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Profile.status).where(Profile.id == account_id)
            )
            status = result.scalar_one_or_none()
        return None if status is None else coerce_status(status)

    async def get_permissions(self, account_id: uuid.UUID) -> StoredPermissions:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Profile.module_permissions, Profile.allowed_modules).where(
                    Profile.id == account_id
                )
            )
            row = result.one_or_none()
        if row is None:
            return ABSENT
        return classify_stored(row.module_permissions, row.allowed_modules)


async def ensure_account(session: AsyncSession, principal: Principal) -> Profile:
    """
    Provision a first-seen identity as a pending member.

    Idempotent: existing profile and role rows are left untouched.
    """
    profile = await session.get(Profile, principal.id)
    if profile is None:
        profile = Profile(
            id=principal.id,
            email=principal.email.lower().strip() if principal.email else None,
            status=AccountStatus.PENDING,
        )
        session.add(profile)
        await session.flush()
        logger.info("Provisioned new account", extra={"account_id": str(principal.id)})

    result = await session.execute(
        select(UserRoleAssignment).where(UserRoleAssignment.user_id == principal.id)
    )
    if result.scalar_one_or_none() is None:
        session.add(UserRoleAssignment(user_id=principal.id, role=AccountRole.MEMBER))
        await session.flush()

    return profile
