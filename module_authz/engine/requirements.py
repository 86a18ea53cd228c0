"""
Requirement variants and the deterministic policy naming scheme.

There are exactly four variants. Each carries only what its evaluation needs
and is immutable, so one instance is shared by every request.

Policy names are derived from the enum values alone, so an endpoint can be
bound to a name without looking at the matrix.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .enums import Action, Module, Role


@dataclass(frozen=True)
class ModuleAction:
    """Caller must be permitted to perform ``action`` within ``module``."""

    module: Module
    action: Action

    def describe(self) -> str:
        return f"ModulePermission: {self.module.value}.{self.action.value}"


@dataclass(frozen=True)
class ModuleAccess:
    """Caller must be permitted to perform some action within ``module``."""

    module: Module

    def describe(self) -> str:
        return f"ModuleAccess: {self.module.value}"


@dataclass(frozen=True)
class RoleSet:
    """Caller must hold at least one of ``allowed_roles``. Does not use the matrix."""

    allowed_roles: frozenset[Role]

    def describe(self) -> str:
        names = ", ".join(sorted(role.value for role in self.allowed_roles))
        return f"RoleSet: [{names}]"


@dataclass(frozen=True)
class AnyModuleAction:
    """
    Caller must be permitted to perform ``action`` in at least one module.

    This is a cross-module convenience check. The grant is not scoped to any
    particular module, so do not use it where module isolation matters; bind
    a ``ModuleAction`` instead.
    """

    action: Action

    def describe(self) -> str:
        return f"CanPerform: {self.action.value}"


Requirement = Union[ModuleAction, ModuleAccess, RoleSet, AnyModuleAction]

REQUIREMENT_TYPES: tuple[type, ...] = (ModuleAction, ModuleAccess, RoleSet, AnyModuleAction)


# ---- Naming --------------------------------------------------------------------------

MODULE_PERMISSION_PREFIX = "ModulePermission"
MODULE_ACCESS_PREFIX = "ModuleAccess"


def module_action_policy_name(module: Module, action: Action) -> str:
    # "ModulePermission.IncidentManagement.Create"
    return f"{MODULE_PERMISSION_PREFIX}.{module.value}.{action.value}"


def module_access_policy_name(module: Module) -> str:
    # "ModuleAccess.PPEManagement"
    return f"{MODULE_ACCESS_PREFIX}.{module.value}"
