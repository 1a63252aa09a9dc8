"""
Access control schemas.
"""

import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from opsconsole.kernel.access import Account, GateDecision, NavItem, effective_permissions
from opsconsole.kernel.access.admin import AccountSummary
from opsconsole.kernel.access.gate import GateOutcome, GateScreen
from opsconsole.kernel.models import AccessLevel, AccountRole, AccountStatus, ModuleKey
from opsconsole.kernel.models.permission import MODULE_LABELS


class GateDecisionResponse(BaseModel):
    """Render decision for a requested path."""

    outcome: GateOutcome
    path: str
    redirect_to: Optional[str] = None
    screen: Optional[GateScreen] = None

    @classmethod
    def from_decision(cls, decision: GateDecision) -> "GateDecisionResponse":
        return cls(
            outcome=decision.outcome,
            path=decision.path,
            redirect_to=decision.redirect_to,
            screen=decision.screen,
        )


class NavItemResponse(BaseModel):
    """Navigation entry visible to the current account."""

    key: str
    path: str
    module: Optional[ModuleKey] = None
    label: Optional[Dict[str, str]] = None

    @classmethod
    def from_item(cls, item: NavItem) -> "NavItemResponse":
        return cls(
            key=item.key,
            path=item.path,
            module=item.module,
            label=MODULE_LABELS.get(item.module) if item.module else None,
        )


class AccountResponse(BaseModel):
    """Resolved account with effective (admin-overridden) levels."""

    id: uuid.UUID
    role: AccountRole
    status: AccountStatus
    permissions: Dict[ModuleKey, AccessLevel]

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            role=account.role,
            status=account.status,
            permissions=effective_permissions(account),
        )


class SessionResponse(BaseModel):
    """Current session: account plus courtesy navigation."""

    account: AccountResponse
    email: Optional[str] = None
    navigation: List[NavItemResponse] = Field(default_factory=list)


class AccountListItem(BaseModel):
    """User manager row. Permissions are the stored matrix, not overridden."""

    id: uuid.UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: AccountRole
    status: AccountStatus
    permissions: Dict[ModuleKey, AccessLevel]

    @classmethod
    def from_summary(cls, summary: AccountSummary) -> "AccountListItem":
        account = summary.account
        return cls(
            id=account.id,
            email=summary.email,
            full_name=summary.full_name,
            role=account.role,
            status=account.status,
            permissions=dict(account.permissions),
        )


class RoleUpdate(BaseModel):
    """Role change request."""

    role: AccountRole


class PermissionsUpdate(BaseModel):
    """Permission edit request. Omitted modules get the policy baseline."""

    permissions: Dict[ModuleKey, AccessLevel]
