"""
Permission resolution.

Pure functions over an already resolved ``Account``. Admins get WRITE on
every module whatever is stored; members get exactly what their resolved
matrix says, NONE when a module is missing.
"""

import uuid
from typing import Dict

from opsconsole.kernel.access.account import Account, AccountProfile
from opsconsole.kernel.access.policy import DEFAULT_POLICY, AccessPolicy
from opsconsole.kernel.access.stored import StoredPermissions, resolve_stored
from opsconsole.kernel.models.account import AccountRole
from opsconsole.kernel.models.permission import ALL_MODULES, AccessLevel, ModuleKey

READABLE_LEVELS = frozenset((AccessLevel.READ, AccessLevel.WRITE))


def build_account(
    account_id: uuid.UUID,
    profile: AccountProfile,
    stored: StoredPermissions,
    policy: AccessPolicy = DEFAULT_POLICY,
) -> Account:
    """Combine role, status and stored permissions into an Account."""
    return Account(
        id=account_id,
        role=profile.role,
        status=profile.status,
        permissions=resolve_stored(stored, policy),
    )


def get_access_level(account: Account, module: ModuleKey) -> AccessLevel:
    """Effective level of ``account`` on ``module``."""
    if account.role == AccountRole.ADMIN:
        return AccessLevel.WRITE
    return account.permissions.get(module, AccessLevel.NONE)


def has_access(account: Account, module: ModuleKey) -> bool:
    """True when the account may at least view the module."""
    return get_access_level(account, module) in READABLE_LEVELS


def can_write(account: Account, module: ModuleKey) -> bool:
    """True when the account may modify the module's data."""
    return get_access_level(account, module) == AccessLevel.WRITE


def effective_permissions(account: Account) -> Dict[ModuleKey, AccessLevel]:
    """Complete module -> level map with the admin override applied."""
    return {module: get_access_level(account, module) for module in ALL_MODULES}


class PermissionResolver:
    """
    Resolver bound to an access policy.

    Thin object wrapper around the module-level functions for callers that
    carry a non-default policy around.
    """

    def __init__(self, policy: AccessPolicy = DEFAULT_POLICY):
        self.policy = policy

    def build_account(
        self,
        account_id: uuid.UUID,
        profile: AccountProfile,
        stored: StoredPermissions,
    ) -> Account:
        return build_account(account_id, profile, stored, self.policy)

    get_access_level = staticmethod(get_access_level)
    has_access = staticmethod(has_access)
    can_write = staticmethod(can_write)
    effective_permissions = staticmethod(effective_permissions)
