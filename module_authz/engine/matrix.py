"""
Permission matrix: Role -> Module -> allowed Actions.

Key ideas:
- Build once at startup (built-in table or YAML file), never mutate after.
- Total over ``Role``: every role has an entry, possibly empty.
- Purely additive. There is no deny entry; administrative tiers are plain
  full-grant rows so every grant is auditable through the same lookup.
- Absence is the default-deny state. Queries never raise for a miss.

This module is pure Python and has no FastAPI dependency.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError

from .enums import (
    ALL_ACTIONS,
    CRUD_ACTIONS,
    PRESETS,
    READ_ONLY_ACTIONS,
    Action,
    Module,
    Role,
)

logger = logging.getLogger(__name__)

Grants = Mapping[Role, Mapping[Module, Iterable[Action]]]


class MatrixConfigError(ValueError):
    """Raised when a matrix definition is invalid."""


# ---- Matrix --------------------------------------------------------------------------


class PermissionMatrix:
    """
    Immutable role -> module -> actions table.

    Usage:
        matrix = PermissionMatrix(default_grants())
        matrix.has_permission(Role.PPE_MANAGER, Module.PPE_MANAGEMENT, Action.DELETE)
    """

    def __init__(self, grants: Grants) -> None:
        unknown = set(grants.keys()) - set(Role)
        if unknown:
            raise MatrixConfigError(f"grants reference unknown roles: {sorted(map(str, unknown))}")

        table: dict[Role, Mapping[Module, frozenset[Action]]] = {}
        for role in Role:
            modules: dict[Module, frozenset[Action]] = {}
            for module, actions in (grants.get(role) or {}).items():
                frozen = frozenset(actions)
                # Empty rows would make accessible_modules() report a module with no actions.
                if frozen:
                    modules[Module(module)] = frozen
            table[role] = MappingProxyType(modules)

        self._table: Mapping[Role, Mapping[Module, frozenset[Action]]] = MappingProxyType(table)
        self._accessible: Mapping[Role, frozenset[Module]] = MappingProxyType(
            {role: frozenset(modules.keys()) for role, modules in table.items()}
        )

    # ---- Queries ---------------------------------------------------------------------

    def accessible_modules(self, role: Role) -> frozenset[Module]:
        """Modules where ``role`` holds at least one action (empty set if none)."""
        return self._accessible.get(role, frozenset())

    def has_permission(self, role: Role, module: Module, action: Action) -> bool:
        """Exact membership test; a missing role, module or action is a plain False."""
        modules = self._table.get(role)
        if not modules:
            return False
        actions = modules.get(module)
        if not actions:
            return False
        return action in actions

    def module_actions(self, role: Role, module: Module) -> frozenset[Action]:
        modules = self._table.get(role)
        if not modules:
            return frozenset()
        return modules.get(module, frozenset())

    def roles_with_module_access(self, module: Module) -> tuple[Role, ...]:
        """Roles (in declaration order) that can reach ``module`` at all."""
        return tuple(role for role in Role if module in self._accessible[role])

    def effective_permissions(self, roles: Iterable[Role]) -> frozenset[str]:
        """
        Union of ``"<Module>.<Action>"`` strings across ``roles``.

        Same naming as the permission part of a module+action policy name.
        """

        perms: set[str] = set()
        for role in roles:
            for module, actions in self._table.get(role, {}).items():
                perms.update(f"{module.value}.{action.value}" for action in actions)
        return frozenset(perms)

    def grants(self) -> Mapping[Role, Mapping[Module, frozenset[Action]]]:
        """Read-only view of the whole table."""
        return self._table


# ---- Role assignment -----------------------------------------------------------------


def can_assign_role(assigner: Role, target: Role) -> bool:
    """
    Whether a holder of ``assigner`` may grant ``target`` to another user.

    - SuperAdmin and Developer may assign any role.
    - Admin may assign anything below the admin tiers.
    - SecurityManager may assign SecurityOfficer and ComplianceOfficer.
    - Nobody else assigns roles.
    """

    if assigner in (Role.SUPER_ADMIN, Role.DEVELOPER):
        return True
    if assigner is Role.ADMIN:
        return target not in (Role.SUPER_ADMIN, Role.DEVELOPER, Role.ADMIN)
    if assigner is Role.SECURITY_MANAGER:
        return target in (Role.SECURITY_OFFICER, Role.COMPLIANCE_OFFICER)
    return False


# ---- Built-in table ------------------------------------------------------------------


_HSE_MODULES: tuple[Module, ...] = (
    Module.WORK_PERMIT_MANAGEMENT,
    Module.INCIDENT_MANAGEMENT,
    Module.RISK_MANAGEMENT,
    Module.INSPECTION_MANAGEMENT,
    Module.AUDIT_MANAGEMENT,
    Module.PPE_MANAGEMENT,
    Module.TRAINING_MANAGEMENT,
    Module.LICENSE_MANAGEMENT,
    Module.WASTE_MANAGEMENT,
    Module.HEALTH_MONITORING,
)

_SECURITY_MODULES: tuple[Module, ...] = (
    Module.PHYSICAL_SECURITY,
    Module.INFORMATION_SECURITY,
    Module.PERSONNEL_SECURITY,
    Module.SECURITY_INCIDENT_MANAGEMENT,
)


def _single_module_manager(module: Module) -> dict[Module, frozenset[Action]]:
    return {
        Module.DASHBOARD: READ_ONLY_ACTIONS,
        module: ALL_ACTIONS,
        Module.REPORTING: READ_ONLY_ACTIONS,
    }


def default_grants() -> dict[Role, dict[Module, frozenset[Action]]]:
    """The application's grant table."""

    system_admin = {module: ALL_ACTIONS for module in Module}

    admin = {module: ALL_ACTIONS for module in Module if module is not Module.APPLICATION_SETTINGS}
    admin[Module.USER_MANAGEMENT] = CRUD_ACTIONS

    security_manager = {module: ALL_ACTIONS for module in _SECURITY_MODULES}
    security_manager.update(
        {
            Module.DASHBOARD: ALL_ACTIONS,
            Module.COMPLIANCE_MANAGEMENT: ALL_ACTIONS,
            Module.REPORTING: ALL_ACTIONS,
        }
    )

    security_officer = {
        Module.DASHBOARD: READ_ONLY_ACTIONS,
        Module.PHYSICAL_SECURITY: CRUD_ACTIONS,
        Module.INFORMATION_SECURITY: CRUD_ACTIONS,
        Module.PERSONNEL_SECURITY: CRUD_ACTIONS,
        Module.SECURITY_INCIDENT_MANAGEMENT: ALL_ACTIONS,
        Module.COMPLIANCE_MANAGEMENT: READ_ONLY_ACTIONS,
        Module.REPORTING: READ_ONLY_ACTIONS,
    }

    compliance_officer = {module: READ_ONLY_ACTIONS for module in _HSE_MODULES + _SECURITY_MODULES}
    compliance_officer.update(
        {
            Module.DASHBOARD: ALL_ACTIONS,
            Module.COMPLIANCE_MANAGEMENT: ALL_ACTIONS,
            Module.REPORTING: ALL_ACTIONS,
        }
    )

    reporter_excluded = (Module.USER_MANAGEMENT, Module.APPLICATION_SETTINGS, Module.WORKFLOW_MANAGEMENT)
    reporter = {module: READ_ONLY_ACTIONS for module in Module if module not in reporter_excluded}

    return {
        Role.SUPER_ADMIN: dict(system_admin),
        Role.DEVELOPER: dict(system_admin),
        Role.ADMIN: admin,
        Role.INCIDENT_MANAGER: _single_module_manager(Module.INCIDENT_MANAGEMENT),
        Role.RISK_MANAGER: _single_module_manager(Module.RISK_MANAGEMENT),
        Role.PPE_MANAGER: _single_module_manager(Module.PPE_MANAGEMENT),
        Role.HEALTH_MONITOR: _single_module_manager(Module.HEALTH_MONITORING),
        Role.INSPECTION_MANAGER: _single_module_manager(Module.INSPECTION_MANAGEMENT),
        Role.WORKFLOW_MANAGER: _single_module_manager(Module.WORKFLOW_MANAGEMENT),
        Role.SECURITY_MANAGER: security_manager,
        Role.SECURITY_OFFICER: security_officer,
        Role.COMPLIANCE_OFFICER: compliance_officer,
        Role.REPORTER: reporter,
        Role.VIEWER: {Module.DASHBOARD: frozenset({Action.READ})},
        Role.EMPLOYEE: {
            Module.DASHBOARD: frozenset({Action.READ}),
            Module.INCIDENT_MANAGEMENT: frozenset({Action.READ, Action.CREATE}),
            Module.RISK_MANAGEMENT: frozenset({Action.READ, Action.CREATE}),
        },
    }


def build_default_matrix() -> PermissionMatrix:
    return PermissionMatrix(default_grants())


# ---- YAML loader ---------------------------------------------------------------------


class MatrixFileModel(BaseModel):
    # Each module maps to a preset name ("all", "crud", "read_only") or an action list.
    roles: dict[str, dict[str, str | list[str]]] = Field(default_factory=dict)


def _resolve_actions(role_name: str, module_name: str, value: str | list[str]) -> frozenset[Action]:
    if isinstance(value, str):
        preset = PRESETS.get(value)
        if preset is None:
            raise MatrixConfigError(
                f"role {role_name!r}.{module_name} uses unknown preset {value!r}; expected one of {sorted(PRESETS)}"
            )
        return preset

    actions: set[Action] = set()
    for item in value:
        try:
            actions.add(Action(item))
        except ValueError as exc:
            raise MatrixConfigError(f"role {role_name!r}.{module_name} references unknown action {item!r}") from exc
    return frozenset(actions)


def matrix_from_mapping(raw: Mapping[str, Any]) -> PermissionMatrix:
    """
    Validate an already-parsed matrix definition and build the matrix.

    Expected shape:

        roles:
          IncidentManager:
            Dashboard: read_only
            IncidentManagement: all
            Reporting: [Read, Export]
    """

    try:
        model = MatrixFileModel.model_validate(raw)
    except ValidationError as exc:
        raise MatrixConfigError(f"invalid matrix definition: {exc}") from exc

    grants: dict[Role, dict[Module, frozenset[Action]]] = {}
    for role_name, modules_raw in model.roles.items():
        try:
            role = Role(role_name)
        except ValueError as exc:
            raise MatrixConfigError(f"unknown role {role_name!r}") from exc

        modules: dict[Module, frozenset[Action]] = {}
        for module_name, value in modules_raw.items():
            try:
                module = Module(module_name)
            except ValueError as exc:
                raise MatrixConfigError(f"role {role_name!r} references unknown module {module_name!r}") from exc
            modules[module] = _resolve_actions(role_name, module_name, value)
        grants[role] = modules

    missing = [role.value for role in Role if role not in grants]
    if missing:
        logger.info("Matrix definition has no entry for roles=%s (treated as no grants)", missing)

    return PermissionMatrix(grants)


def load_permission_matrix(path: Path) -> PermissionMatrix:
    """Load a matrix from a YAML file with a top-level ``matrix`` key."""

    raw_text = path.read_text(encoding="utf-8")
    raw = yaml.safe_load(raw_text) or {}

    if not isinstance(raw, dict) or "matrix" not in raw:
        raise MatrixConfigError(f"Missing top-level 'matrix' key in config: {path}")

    return matrix_from_mapping(raw["matrix"] or {})
