"""
Default access policy.

The baseline a member gets for modules without an explicit grant. It is a
value passed into the resolver, not a hidden global, so callers and tests
can vary it.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from opsconsole.config import Settings, get_settings
from opsconsole.kernel.models.permission import ALL_MODULES, AccessLevel, ModuleKey
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)

ModulePermissions = Mapping[ModuleKey, AccessLevel]

DEFAULT_PERMISSIONS: ModulePermissions = MappingProxyType({
    ModuleKey.CREDENTIALS: AccessLevel.NONE,
    ModuleKey.CONTRACTS: AccessLevel.NONE,
    ModuleKey.NETWORK: AccessLevel.NONE,
    ModuleKey.TASKS: AccessLevel.WRITE,
    ModuleKey.WIKI: AccessLevel.WRITE,
})

NO_ACCESS: ModulePermissions = MappingProxyType(
    {module: AccessLevel.NONE for module in ALL_MODULES}
)


def complete_permissions(partial: Mapping[ModuleKey, AccessLevel]) -> Dict[ModuleKey, AccessLevel]:
    """Return a full 5-entry map; modules missing from ``partial`` are NONE."""
    return {module: partial.get(module, AccessLevel.NONE) for module in ALL_MODULES}


def parse_level(value: object) -> Optional[AccessLevel]:
    """Coerce a stored level value; None when unrecognised."""
    if isinstance(value, AccessLevel):
        return value
    if isinstance(value, str):
        try:
            return AccessLevel(value.strip().lower())
        except ValueError:
            return None
    return None


def parse_module(value: object) -> Optional[ModuleKey]:
    """Coerce a stored module name; None when unrecognised."""
    if isinstance(value, ModuleKey):
        return value
    if isinstance(value, str):
        try:
            return ModuleKey(value.strip().lower())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class AccessPolicy:
    """Baseline permissions applied to members without explicit grants."""

    default_permissions: ModulePermissions = field(default_factory=lambda: DEFAULT_PERMISSIONS)

    def __post_init__(self) -> None:
        # Always hold a complete, read-only map
        object.__setattr__(
            self,
            "default_permissions",
            MappingProxyType(complete_permissions(self.default_permissions)),
        )

    def baseline(self) -> Dict[ModuleKey, AccessLevel]:
        """Fresh mutable copy of the baseline map."""
        return dict(self.default_permissions)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, str]) -> "AccessPolicy":
        """
        Build a policy from a plain ``{"tasks": "write", ...}`` mapping.

        Unknown modules are ignored; unknown levels become NONE.
        """
        defaults: Dict[ModuleKey, AccessLevel] = {}
        for key, value in raw.items():
            module = parse_module(key)
            if module is None:
                logger.warning("Ignoring unknown module in default policy", extra={"module_key": key})
                continue
            level = parse_level(value)
            if level is None:
                logger.warning(
                    "Unknown level in default policy, using none",
                    extra={"module_key": key, "level": str(value)},
                )
                level = AccessLevel.NONE
            defaults[module] = level
        return cls(default_permissions=defaults)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AccessPolicy":
        """Build the policy configured via DEFAULT_PERMISSIONS."""
        settings = settings or get_settings()
        return cls.from_mapping(settings.default_permissions)


DEFAULT_POLICY = AccessPolicy()
