"""
Stored permission payloads.

Profiles carry permissions in one of two shapes: the per-module level map
(``module_permissions``) or the deprecated list of fully-allowed modules
(``allowed_modules``). The shape is decided exactly once, at the data
boundary, into ``NewFormat | Legacy | Absent``; everything downstream works
on the tagged value.

Resolution is intentionally asymmetric:

* ``NewFormat`` overlays the policy baseline. Modules it does not mention
  keep their baseline level.
* ``Legacy`` replaces the baseline entirely. Listed modules are WRITE,
  everything else is NONE, including the modules the baseline would grant.
* ``Absent`` is the baseline verbatim.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from opsconsole.kernel.access.policy import (
    DEFAULT_POLICY,
    AccessPolicy,
    parse_level,
    parse_module,
)
from opsconsole.kernel.models.permission import ALL_MODULES, AccessLevel, ModuleKey
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class NewFormat:
    """Explicit per-module levels; may cover only some modules."""

    entries: Mapping[ModuleKey, AccessLevel] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))


@dataclass(frozen=True)
class Legacy:
    """Deprecated all-or-nothing grant: listed modules are fully writable."""

    allowed_modules: FrozenSet[ModuleKey] = frozenset()


@dataclass(frozen=True)
class Absent:
    """No permission data stored for the account."""


ABSENT = Absent()

StoredPermissions = Union[NewFormat, Legacy, Absent]


def new_format_from_raw(raw: Mapping[str, Any]) -> NewFormat:
    """
    Build a NewFormat value from a stored JSON object.

    Unknown module keys are dropped. A known module with an unrecognised
    level is kept as an explicit NONE so a corrupt entry never falls back
    to a more generous baseline.
    """
    entries: Dict[ModuleKey, AccessLevel] = {}
    for key, value in raw.items():
        module = parse_module(key)
        if module is None:
            logger.warning("Dropping unknown module in stored permissions", extra={"module_key": str(key)})
            continue
        level = parse_level(value)
        if level is None:
            logger.warning(
                "Unknown stored access level, treating as none",
                extra={"module_key": module.value, "level": str(value)},
            )
            level = AccessLevel.NONE
        entries[module] = level
    return NewFormat(entries)


def legacy_from_raw(raw: Iterable[Any]) -> Legacy:
    """Build a Legacy value from a stored list of module names."""
    allowed = set()
    for name in raw:
        module = parse_module(name)
        if module is None:
            logger.warning("Dropping unknown module in legacy permissions", extra={"module_key": str(name)})
            continue
        allowed.add(module)
    return Legacy(frozenset(allowed))


def classify_stored(
    module_permissions: Optional[Any],
    allowed_modules: Optional[Any],
) -> StoredPermissions:
    """
    Decide the shape of a profile's permission columns.

    New-format data wins whenever present; the legacy list is only
    consulted when there is no module map at all.
    """
    if isinstance(module_permissions, Mapping):
        return new_format_from_raw(module_permissions)
    if module_permissions is not None:
        logger.warning(
            "Ignoring malformed module_permissions payload",
            extra={"payload_type": type(module_permissions).__name__},
        )
    if isinstance(allowed_modules, (list, tuple, set, frozenset)):
        return legacy_from_raw(allowed_modules)
    if allowed_modules is not None:
        logger.warning(
            "Ignoring malformed allowed_modules payload",
            extra={"payload_type": type(allowed_modules).__name__},
        )
    return ABSENT


def resolve_stored(
    stored: StoredPermissions,
    policy: AccessPolicy = DEFAULT_POLICY,
) -> Dict[ModuleKey, AccessLevel]:
    """Resolve stored data into a complete module -> level map."""
    if isinstance(stored, NewFormat):
        resolved = policy.baseline()
        resolved.update(stored.entries)
        return resolved
    if isinstance(stored, Legacy):
        return {
            module: AccessLevel.WRITE if module in stored.allowed_modules else AccessLevel.NONE
            for module in ALL_MODULES
        }
    return policy.baseline()
