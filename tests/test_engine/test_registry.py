"""Tests for policy generation and lookup."""

import pytest

from module_authz.engine import registry as registry_module
from module_authz.engine.enums import ADMIN_ROLES, MANAGER_ROLES, SYSTEM_ADMIN_ROLES, Action, Module, Role
from module_authz.engine.registry import (
    CONVENIENCE_POLICIES,
    ROLE_SET_POLICIES,
    PolicyRegistryError,
    UnknownPolicyError,
    _RegistryBuilder,
    build_policy_registry,
    expected_policy_count,
)
from module_authz.engine.requirements import (
    AnyModuleAction,
    ModuleAccess,
    ModuleAction,
    RoleSet,
    module_access_policy_name,
    module_action_policy_name,
)


def test_registry_is_complete_and_countable(registry):
    assert len(registry.names_of_kind(ModuleAction)) == len(Module) * len(Action)
    assert len(registry.names_of_kind(ModuleAccess)) == len(Module)
    assert len(registry.names_of_kind(RoleSet)) == len(ROLE_SET_POLICIES)
    assert len(registry.names_of_kind(AnyModuleAction)) == len(CONVENIENCE_POLICIES)
    assert len(registry) == expected_policy_count() == 20 * 8 + 20 + 4 + 6


def test_every_pair_has_its_policy(registry):
    for module in Module:
        assert registry.require(module_access_policy_name(module)) == ModuleAccess(module)
        for action in Action:
            assert registry.require(module_action_policy_name(module, action)) == ModuleAction(module, action)


def test_policy_names_are_deterministic():
    assert module_action_policy_name(Module.INCIDENT_MANAGEMENT, Action.CREATE) == "ModulePermission.IncidentManagement.Create"
    assert module_access_policy_name(Module.PPE_MANAGEMENT) == "ModuleAccess.PPEManagement"
    assert list(build_policy_registry()) == list(build_policy_registry())


def test_role_set_policies(registry):
    assert registry.require("RequireSystemAdmin") == RoleSet(SYSTEM_ADMIN_ROLES)
    assert registry.require("RequireFunctionalAdmin") == RoleSet(ADMIN_ROLES)
    manager = registry.require("RequireManagerRole")
    assert manager.allowed_roles == ADMIN_ROLES | MANAGER_ROLES
    assert Role.EMPLOYEE not in manager.allowed_roles
    assert registry.require("CanConfigureSystem") == RoleSet(frozenset({Role.SUPER_ADMIN, Role.DEVELOPER}))


def test_convenience_policies(registry):
    assert registry.require("CanCreateRecords") == AnyModuleAction(Action.CREATE)
    assert registry.require("CanExportData") == AnyModuleAction(Action.EXPORT)
    assert registry.require("CanAssignUsers") == AnyModuleAction(Action.ASSIGN)


def test_unknown_policy_lookup(registry):
    assert registry.get("ModulePermission.Hazards.Read") is None
    assert "ModulePermission.Hazards.Read" not in registry
    with pytest.raises(UnknownPolicyError):
        registry.require("ModulePermission.Hazards.Read")


def test_registry_cannot_be_mutated(registry):
    with pytest.raises(TypeError):
        registry._policies["Extra"] = RoleSet(frozenset({Role.ADMIN}))  # type: ignore[index]


def test_duplicate_registration_fails():
    builder = _RegistryBuilder()
    builder.add("ModuleAccess.Dashboard", ModuleAccess(Module.DASHBOARD))
    with pytest.raises(PolicyRegistryError, match="registered twice"):
        builder.add("ModuleAccess.Dashboard", ModuleAccess(Module.DASHBOARD))


@pytest.mark.parametrize("name", ["", " Leading", "Has Space", "Trailing\t"])
def test_invalid_names_fail(name):
    with pytest.raises(PolicyRegistryError, match="invalid policy name"):
        _RegistryBuilder().add(name, ModuleAccess(Module.DASHBOARD))


def test_incomplete_set_fails():
    builder = _RegistryBuilder()
    builder.add("ModuleAccess.Dashboard", ModuleAccess(Module.DASHBOARD))
    with pytest.raises(PolicyRegistryError, match="incomplete"):
        builder.build(expected=2)


def test_empty_role_set_fails(monkeypatch):
    monkeypatch.setattr(registry_module, "ROLE_SET_POLICIES", {"RequireNobody": frozenset()})
    with pytest.raises(PolicyRegistryError, match="has no roles"):
        build_policy_registry()


def test_convenience_name_colliding_with_role_set_fails(monkeypatch):
    monkeypatch.setattr(registry_module, "CONVENIENCE_POLICIES", {"RequireSystemAdmin": Action.CREATE})
    with pytest.raises(PolicyRegistryError, match="registered twice"):
        build_policy_registry()
