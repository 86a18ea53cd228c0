"""
Policy registry: every named Requirement the application can bind to.

Built once at startup by walking the closed ``Module`` and ``Action``
enumerations, never the matrix. The generated set is:

- one ``ModuleAction`` per (module, action) pair,
- one ``ModuleAccess`` per module,
- a fixed set of ``RoleSet`` policies for the administrative tiers,
- a fixed set of ``AnyModuleAction`` convenience policies.

Any inconsistency (duplicate name, empty role set, count mismatch) raises
``PolicyRegistryError`` so the process never serves requests with an
incomplete or ambiguous policy set.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterator, Mapping

from .enums import ADMIN_ROLES, MANAGER_ROLES, SYSTEM_ADMIN_ROLES, Action, Module, Role
from .requirements import (
    AnyModuleAction,
    ModuleAccess,
    ModuleAction,
    Requirement,
    RoleSet,
    module_access_policy_name,
    module_action_policy_name,
)

logger = logging.getLogger(__name__)


class PolicyRegistryError(ValueError):
    """Raised when the policy set cannot be built completely and unambiguously."""


class UnknownPolicyError(KeyError):
    """Raised when a name outside the generated policy set is looked up or bound."""


# ---- Fixed policies ------------------------------------------------------------------

REQUIRE_SYSTEM_ADMIN = "RequireSystemAdmin"
REQUIRE_FUNCTIONAL_ADMIN = "RequireFunctionalAdmin"
REQUIRE_MANAGER_ROLE = "RequireManagerRole"
CAN_CONFIGURE_SYSTEM = "CanConfigureSystem"

CAN_CREATE_RECORDS = "CanCreateRecords"
CAN_UPDATE_RECORDS = "CanUpdateRecords"
CAN_DELETE_RECORDS = "CanDeleteRecords"
CAN_EXPORT_DATA = "CanExportData"
CAN_APPROVE_ACTIONS = "CanApproveActions"
CAN_ASSIGN_USERS = "CanAssignUsers"

ROLE_SET_POLICIES: Mapping[str, frozenset[Role]] = MappingProxyType(
    {
        REQUIRE_SYSTEM_ADMIN: SYSTEM_ADMIN_ROLES,
        REQUIRE_FUNCTIONAL_ADMIN: ADMIN_ROLES,
        REQUIRE_MANAGER_ROLE: ADMIN_ROLES | MANAGER_ROLES,
        CAN_CONFIGURE_SYSTEM: SYSTEM_ADMIN_ROLES,
    }
)

CONVENIENCE_POLICIES: Mapping[str, Action] = MappingProxyType(
    {
        CAN_CREATE_RECORDS: Action.CREATE,
        CAN_UPDATE_RECORDS: Action.UPDATE,
        CAN_DELETE_RECORDS: Action.DELETE,
        CAN_EXPORT_DATA: Action.EXPORT,
        CAN_APPROVE_ACTIONS: Action.APPROVE,
        CAN_ASSIGN_USERS: Action.ASSIGN,
    }
)


def expected_policy_count() -> int:
    return len(Module) * len(Action) + len(Module) + len(ROLE_SET_POLICIES) + len(CONVENIENCE_POLICIES)


# ---- Registry ------------------------------------------------------------------------


class PolicyRegistry:
    """
    Immutable name -> Requirement mapping.

    Iteration follows registration order, which is deterministic.
    """

    def __init__(self, policies: Mapping[str, Requirement]) -> None:
        self._policies: Mapping[str, Requirement] = MappingProxyType(dict(policies))

    def get(self, name: str) -> Requirement | None:
        return self._policies.get(name)

    def require(self, name: str) -> Requirement:
        """Return the Requirement registered as ``name`` or raise UnknownPolicyError."""
        try:
            return self._policies[name]
        except KeyError:
            raise UnknownPolicyError(name) from None

    def names_of_kind(self, kind: type) -> tuple[str, ...]:
        return tuple(name for name, req in self._policies.items() if isinstance(req, kind))

    def items(self):
        return self._policies.items()

    def __contains__(self, name: object) -> bool:
        return name in self._policies

    def __len__(self) -> int:
        return len(self._policies)

    def __iter__(self) -> Iterator[str]:
        return iter(self._policies)


class _RegistryBuilder:
    def __init__(self) -> None:
        self._policies: dict[str, Requirement] = {}

    def add(self, name: str, requirement: Requirement) -> None:
        if not name or name != name.strip() or any(ch.isspace() for ch in name):
            raise PolicyRegistryError(f"invalid policy name {name!r}")
        if name in self._policies:
            raise PolicyRegistryError(f"policy {name!r} registered twice")
        self._policies[name] = requirement

    def build(self, expected: int) -> PolicyRegistry:
        if len(self._policies) != expected:
            raise PolicyRegistryError(f"policy set incomplete: built {len(self._policies)}, expected {expected}")
        return PolicyRegistry(self._policies)


def build_policy_registry() -> PolicyRegistry:
    """Generate the complete policy set. Raises PolicyRegistryError on any defect."""

    builder = _RegistryBuilder()

    for module in Module:
        for action in Action:
            builder.add(module_action_policy_name(module, action), ModuleAction(module, action))

    for module in Module:
        builder.add(module_access_policy_name(module), ModuleAccess(module))

    for name, roles in ROLE_SET_POLICIES.items():
        if not roles:
            raise PolicyRegistryError(f"role-set policy {name!r} has no roles")
        builder.add(name, RoleSet(frozenset(roles)))

    for name, action in CONVENIENCE_POLICIES.items():
        builder.add(name, AnyModuleAction(action))

    registry = builder.build(expected_policy_count())
    logger.info(
        "Policy registry built policies=%s modules=%s actions=%s",
        len(registry),
        len(Module),
        len(Action),
    )
    return registry
