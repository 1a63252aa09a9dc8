"""
FastAPI dependencies for identity, account resolution and database sessions.
"""

import asyncio
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opsconsole.config import get_settings
from opsconsole.database import get_db, get_session_factory
from opsconsole.kernel.access import (
    Account,
    AccessPolicy,
    AccountLoader,
    AdminRequiredError,
    Principal,
    SessionGate,
    SqlAccessStore,
    ensure_account,
    require_active_admin,
)
from opsconsole.kernel.identity import verify_access_token
from opsconsole.logging_config import account_id_var, get_logger

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker, Depends(get_session_factory)]


def get_access_policy() -> AccessPolicy:
    """Default permission policy from settings."""
    return AccessPolicy.from_settings(get_settings())


def get_session_gate() -> SessionGate:
    return SessionGate.from_settings(get_settings())


Policy = Annotated[AccessPolicy, Depends(get_access_policy)]


def get_account_loader(session_factory: SessionFactory, policy: Policy) -> AccountLoader:
    return AccountLoader(SqlAccessStore(session_factory), policy)


Loader = Annotated[AccountLoader, Depends(get_account_loader)]
Gate = Annotated[SessionGate, Depends(get_session_gate)]


async def _provision(session_factory: async_sessionmaker, principal: Principal) -> None:
    """
    Create the profile and role rows for a first-seen identity.

    A storage failure is logged and the request carries on; the loader
    then resolves the identity to a pending member.
    """
    try:
        async with session_factory() as session:
            try:
                await ensure_account(session, principal)
                await session.commit()
            except IntegrityError:
                # Another request provisioned the same identity first
                await session.rollback()
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.warning(
            "Account provisioning failed, continuing with safe defaults",
            exc_info=True,
            extra={"account_id": str(principal.id)},
        )


async def get_principal_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    session_factory: SessionFactory,
) -> Optional[Principal]:
    """Principal for the bearer token, or None when absent or invalid."""
    if not credentials:
        return None

    principal = verify_access_token(credentials.credentials)
    if principal is None:
        return None

    account_id_var.set(str(principal.id))
    await _provision(session_factory, principal)
    return principal


async def get_current_principal(
    principal: Annotated[Optional[Principal], Depends(get_principal_optional)],
) -> Principal:
    """Principal or 401."""
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


OptionalPrincipal = Annotated[Optional[Principal], Depends(get_principal_optional)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def get_current_account(principal: CurrentPrincipal, loader: Loader) -> Account:
    """Freshly resolved account for the current principal. Never cached."""
    return await loader.load(principal)


CurrentAccount = Annotated[Account, Depends(get_current_account)]


async def require_admin(account: CurrentAccount) -> Account:
    """Require the current account to be an active admin."""
    try:
        require_active_admin(account)
    except AdminRequiredError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return account


AdminAccount = Annotated[Account, Depends(require_admin)]
