"""
Kernel Layer

Foundational components of the ops console access engine:
- Data models (profiles, role assignments, module vocabulary)
- Identity (verification of externally issued access tokens)
- Access control (policy, resolution, route authorization, session gate)

Invariants:
- Every failure narrows access, never widens it
- Role and permission rows change only through administrator operations
"""

from opsconsole.kernel.models import (
    AccessLevel,
    AccountRole,
    AccountStatus,
    ModuleKey,
    Profile,
    UserRoleAssignment,
)

__all__ = [
    "AccessLevel",
    "AccountRole",
    "AccountStatus",
    "ModuleKey",
    "Profile",
    "UserRoleAssignment",
]
