"""
Access Control Engine.

Decides, for every session and navigation, whether an account may view a
functional area and at what capability level.
"""

from opsconsole.kernel.access.account import Account, AccountProfile, Principal, UNPROVISIONED
from opsconsole.kernel.access.admin import AccountSummary, AdminService, require_active_admin
from opsconsole.kernel.access.errors import (
    AccessEngineError,
    AccountNotFoundError,
    AdminRequiredError,
    PermissionUpdateError,
)
from opsconsole.kernel.access.gate import GateDecision, GateOutcome, GateScreen, SessionGate, evaluate
from opsconsole.kernel.access.loader import AccessStore, AccountLoader
from opsconsole.kernel.access.policy import DEFAULT_PERMISSIONS, DEFAULT_POLICY, AccessPolicy
from opsconsole.kernel.access.resolver import (
    PermissionResolver,
    build_account,
    can_write,
    effective_permissions,
    get_access_level,
    has_access,
)
from opsconsole.kernel.access.routes import (
    MODULE_ROUTES,
    NAV_ITEMS,
    NavItem,
    can_access_route,
    module_for_path,
    visible_navigation,
)
from opsconsole.kernel.access.session import AccessSession
from opsconsole.kernel.access.store import SqlAccessStore, ensure_account
from opsconsole.kernel.access.stored import (
    ABSENT,
    Absent,
    Legacy,
    NewFormat,
    StoredPermissions,
    classify_stored,
    resolve_stored,
)

__all__ = [
    # Values
    "Account",
    "AccountProfile",
    "Principal",
    "UNPROVISIONED",
    # Policy & stored formats
    "AccessPolicy",
    "DEFAULT_PERMISSIONS",
    "DEFAULT_POLICY",
    "ABSENT",
    "Absent",
    "Legacy",
    "NewFormat",
    "StoredPermissions",
    "classify_stored",
    "resolve_stored",
    # Resolver
    "PermissionResolver",
    "build_account",
    "can_write",
    "effective_permissions",
    "get_access_level",
    "has_access",
    # Routes
    "MODULE_ROUTES",
    "NAV_ITEMS",
    "NavItem",
    "can_access_route",
    "module_for_path",
    "visible_navigation",
    # Gate & session
    "GateDecision",
    "GateOutcome",
    "GateScreen",
    "SessionGate",
    "evaluate",
    "AccessSession",
    # Loading & storage
    "AccessStore",
    "AccountLoader",
    "SqlAccessStore",
    "ensure_account",
    # Administration
    "AccountSummary",
    "AdminService",
    "require_active_admin",
    # Errors
    "AccessEngineError",
    "AccountNotFoundError",
    "AdminRequiredError",
    "PermissionUpdateError",
]
