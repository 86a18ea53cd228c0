"""
Module-scoped role-based authorization engine.

This package has no dependency on the web layer (module_authz.security,
module_authz.routers). Build an ``Authorizer`` once at startup with
``build_authorizer()`` and call ``evaluate(policy_name, identity)`` per request.
"""

from .decision import Decision, DecisionLog, DecisionReason
from .enums import Action, Module, Role, parse_role
from .evaluator import AuthorizationResult, Authorizer, Evaluator, build_authorizer
from .identity import CallerIdentity, identity_from_claims
from .matrix import (
    MatrixConfigError,
    PermissionMatrix,
    build_default_matrix,
    can_assign_role,
    load_permission_matrix,
)
from .registry import PolicyRegistry, PolicyRegistryError, UnknownPolicyError, build_policy_registry
from .requirements import (
    AnyModuleAction,
    ModuleAccess,
    ModuleAction,
    Requirement,
    RoleSet,
    module_access_policy_name,
    module_action_policy_name,
)

__all__ = [
    "Action",
    "AnyModuleAction",
    "AuthorizationResult",
    "Authorizer",
    "CallerIdentity",
    "Decision",
    "DecisionLog",
    "DecisionReason",
    "Evaluator",
    "MatrixConfigError",
    "Module",
    "ModuleAccess",
    "ModuleAction",
    "PermissionMatrix",
    "PolicyRegistry",
    "PolicyRegistryError",
    "Requirement",
    "Role",
    "RoleSet",
    "UnknownPolicyError",
    "build_authorizer",
    "build_default_matrix",
    "build_policy_registry",
    "can_assign_role",
    "identity_from_claims",
    "load_permission_matrix",
    "module_access_policy_name",
    "module_action_policy_name",
    "parse_role",
]
