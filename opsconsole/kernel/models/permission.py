"""
Module and access-level vocabulary for the permission matrix.
"""

from enum import Enum
from typing import Dict, Tuple


class ModuleKey(str, Enum):
    """Independently permissioned functional areas of the console."""
    CREDENTIALS = "credentials"
    CONTRACTS = "contracts"
    NETWORK = "network"
    TASKS = "tasks"
    WIKI = "wiki"


class AccessLevel(str, Enum):
    """Capability granted on a module."""
    NONE = "none"
    READ = "read"
    WRITE = "write"


ALL_MODULES: Tuple[ModuleKey, ...] = tuple(ModuleKey)

MODULE_LABELS: Dict[ModuleKey, Dict[str, str]] = {
    ModuleKey.CREDENTIALS: {"en": "Credential Vault", "vi": "Kho Mật Khẩu"},
    ModuleKey.CONTRACTS: {"en": "Contracts & Licenses", "vi": "Hợp Đồng & Giấy Phép"},
    ModuleKey.NETWORK: {"en": "Network IPAM", "vi": "Quản Lý IP"},
    ModuleKey.TASKS: {"en": "Task Tracker", "vi": "Theo Dõi Công Việc"},
    ModuleKey.WIKI: {"en": "Tech Wiki", "vi": "Wiki Kỹ Thuật"},
}
