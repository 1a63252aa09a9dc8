"""
Kernel Data Models

SQLAlchemy models for account lifecycle, roles and module permissions,
plus the shared access vocabulary.
"""

from opsconsole.kernel.models.base import Base, TimestampMixin, generate_uuid
from opsconsole.kernel.models.account import (
    AccountRole,
    AccountStatus,
    Profile,
    UserRoleAssignment,
)
from opsconsole.kernel.models.permission import (
    ALL_MODULES,
    MODULE_LABELS,
    AccessLevel,
    ModuleKey,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # Accounts
    "AccountRole",
    "AccountStatus",
    "Profile",
    "UserRoleAssignment",
    # Permissions
    "ALL_MODULES",
    "MODULE_LABELS",
    "AccessLevel",
    "ModuleKey",
]
