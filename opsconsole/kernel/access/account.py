"""
Immutable values that flow through the decision path.
"""

import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional

from opsconsole.kernel.access.policy import NO_ACCESS, ModulePermissions, complete_permissions
from opsconsole.kernel.models.account import AccountRole, AccountStatus


@dataclass(frozen=True)
class Principal:
    """An authenticated identity as reported by the identity provider."""

    id: uuid.UUID
    email: Optional[str] = None


@dataclass(frozen=True)
class AccountProfile:
    """Lifecycle status and role of an account."""

    role: AccountRole = AccountRole.MEMBER
    status: AccountStatus = AccountStatus.PENDING


# "Identity exists, profile not yet provisioned"
UNPROVISIONED = AccountProfile()


@dataclass(frozen=True)
class Account:
    """
    A fully resolved account: role, status and the complete permission map.

    ``permissions`` is the stored matrix after default policy and legacy
    migration, before the admin override. The override is applied by the
    resolver so the stored view stays inspectable.
    """

    id: uuid.UUID
    role: AccountRole = AccountRole.MEMBER
    status: AccountStatus = AccountStatus.PENDING
    permissions: ModulePermissions = field(default_factory=lambda: NO_ACCESS)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "permissions", MappingProxyType(complete_permissions(self.permissions))
        )

    @property
    def is_admin(self) -> bool:
        return self.role == AccountRole.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE
