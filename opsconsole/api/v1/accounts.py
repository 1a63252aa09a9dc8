"""
Account administration endpoints (user manager).
"""

import uuid
from typing import Any, Awaitable, Callable, List

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from opsconsole.api.deps import AdminAccount, DbSession, Policy
from opsconsole.kernel.access import (
    AccessPolicy,
    AccountNotFoundError,
    AdminService,
    PermissionUpdateError,
)
from opsconsole.logging_config import get_logger
from opsconsole.schemas.access import AccountListItem, PermissionsUpdate, RoleUpdate
from opsconsole.schemas.common import ErrorResponse, SuccessResponse

logger = get_logger(__name__)

router = APIRouter(
    responses={
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
)


def _service(db: AsyncSession, policy: AccessPolicy) -> AdminService:
    return AdminService(db, policy)


async def _apply(
    db: AsyncSession,
    policy: AccessPolicy,
    account_id: uuid.UUID,
    operation: Callable[[AdminService], Awaitable[Any]],
) -> Any:
    """
    Run an administrator edit and commit it.

    The commit happens here rather than at dependency teardown so the
    caller's next navigation already sees the change.
    """
    try:
        result = await operation(_service(db, policy))
        await db.commit()
    except AccountNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionUpdateError as e:
        await db.rollback()
        logger.warning("Administrator edit failed", extra={"account_id": str(account_id)})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except SQLAlchemyError:
        await db.rollback()
        logger.warning("Administrator edit could not be committed", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(PermissionUpdateError(account_id, "commit failed")),
        )
    return result


@router.get("", response_model=List[AccountListItem])
async def list_accounts(admin: AdminAccount, db: DbSession, policy: Policy):
    """List every account with its role, status and stored permissions."""
    summaries = await _service(db, policy).list_accounts()
    return [AccountListItem.from_summary(s) for s in summaries]


@router.post("/{account_id}/approve", response_model=SuccessResponse)
async def approve_account(account_id: uuid.UUID, admin: AdminAccount, db: DbSession, policy: Policy):
    """Activate a pending account."""
    await _apply(db, policy, account_id, lambda service: service.approve(account_id))
    return SuccessResponse(message="Account approved")


@router.post("/{account_id}/block", response_model=SuccessResponse)
async def block_account(account_id: uuid.UUID, admin: AdminAccount, db: DbSession, policy: Policy):
    """Suspend an account."""
    if account_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Administrators cannot block themselves",
        )
    await _apply(db, policy, account_id, lambda service: service.block(account_id))
    return SuccessResponse(message="Account blocked")


@router.put("/{account_id}/role", response_model=SuccessResponse)
async def change_role(
    account_id: uuid.UUID,
    data: RoleUpdate,
    admin: AdminAccount,
    db: DbSession,
    policy: Policy,
):
    """Change an account's role."""
    role = await _apply(db, policy, account_id, lambda service: service.change_role(account_id, data.role))
    return SuccessResponse(message="Role updated", data={"role": role.value})


@router.put("/{account_id}/permissions", response_model=SuccessResponse)
async def update_permissions(
    account_id: uuid.UUID,
    data: PermissionsUpdate,
    admin: AdminAccount,
    db: DbSession,
    policy: Policy,
):
    """Replace an account's module permissions."""
    permissions = await _apply(
        db,
        policy,
        account_id,
        lambda service: service.update_permissions(account_id, data.permissions),
    )
    return SuccessResponse(
        message="Permissions updated",
        data={module.value: level.value for module, level in permissions.items()},
    )
