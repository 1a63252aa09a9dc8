"""
Route authorization and the navigation catalogue.

Only the five module routes are restricted at this layer. Every other path
(dashboard, settings, activity log, user manager, auth, not-found,
access-denied) is module-unrestricted; pages needing stricter gating, such
as the admin-only user manager, enforce it themselves.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional
from urllib.parse import urlsplit

from opsconsole.kernel.access.account import Account
from opsconsole.kernel.access.resolver import has_access
from opsconsole.kernel.models.permission import ModuleKey

MODULE_ROUTES: Mapping[ModuleKey, str] = MappingProxyType({
    ModuleKey.CREDENTIALS: "/credentials",
    ModuleKey.CONTRACTS: "/contracts",
    ModuleKey.NETWORK: "/network",
    ModuleKey.TASKS: "/tasks",
    ModuleKey.WIKI: "/wiki",
})

_ROUTE_MODULES: Dict[str, ModuleKey] = {route: module for module, route in MODULE_ROUTES.items()}


def normalize_path(path: str) -> str:
    """Strip query, fragment and trailing slashes; ensure a leading slash."""
    parts = urlsplit(path or "/")
    cleaned = "/" + parts.path.strip("/")
    return cleaned.lower()


def module_for_path(path: str) -> Optional[ModuleKey]:
    """
    Module guarding ``path``, or None for unrestricted paths.

    Sub-paths belong to their module: ``/credentials/42`` is guarded by
    credentials just like ``/credentials``.
    """
    normalized = normalize_path(path)
    if normalized in _ROUTE_MODULES:
        return _ROUTE_MODULES[normalized]
    for route, module in _ROUTE_MODULES.items():
        if normalized.startswith(route + "/"):
            return module
    return None


def can_access_route(account: Account, path: str) -> bool:
    """Module-level route check. Lifecycle status is the gate's concern."""
    if account.is_admin:
        return True
    module = module_for_path(path)
    if module is None:
        return True
    return has_access(account, module)


@dataclass(frozen=True)
class NavItem:
    """Sidebar entry."""

    key: str
    path: str
    module: Optional[ModuleKey] = None
    admin_only: bool = False


NAV_ITEMS: List[NavItem] = [
    NavItem("dashboard", "/"),
    NavItem("credentials", MODULE_ROUTES[ModuleKey.CREDENTIALS], ModuleKey.CREDENTIALS),
    NavItem("contracts", MODULE_ROUTES[ModuleKey.CONTRACTS], ModuleKey.CONTRACTS),
    NavItem("network", MODULE_ROUTES[ModuleKey.NETWORK], ModuleKey.NETWORK),
    NavItem("tasks", MODULE_ROUTES[ModuleKey.TASKS], ModuleKey.TASKS),
    NavItem("wiki", MODULE_ROUTES[ModuleKey.WIKI], ModuleKey.WIKI),
    NavItem("activity_logs", "/activity-logs"),
    NavItem("settings", "/settings"),
    NavItem("users", "/users", admin_only=True),
]


def visible_navigation(account: Account, items: Optional[List[NavItem]] = None) -> List[NavItem]:
    """
    Navigation entries worth showing to ``account``.

    Hiding a link is a courtesy; can_access_route() is still what decides
    whether the page renders.
    """
    visible = []
    for item in NAV_ITEMS if items is None else items:
        if item.admin_only and not account.is_admin:
            continue
        if item.module is not None and not has_access(account, item.module):
            continue
        visible.append(item)
    return visible
