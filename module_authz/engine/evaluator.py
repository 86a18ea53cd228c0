"""
Evaluator and the name-based decision API.

Algorithm (same shape for every requirement variant):
1. Unauthenticated caller -> deny. The matrix is not consulted.
2. No role claims -> deny. The matrix is not consulted.
3. Parse each claim in presentation order; unparseable claims are logged
   and skipped. If none parse -> deny.
4. The first parsed role that satisfies the requirement grants (OR across
   roles). No role can revoke another role's grant.
5. Otherwise deny after trying every role.

Every evaluation produces exactly one decision record. Evaluators hold no
per-call state, so one instance serves all requests concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .decision import Decision, DecisionLog, DecisionReason, denied, granted
from .enums import Module, Role, parse_role
from .identity import CallerIdentity
from .matrix import PermissionMatrix, build_default_matrix
from .registry import PolicyRegistry, build_policy_registry
from .requirements import (
    REQUIREMENT_TYPES,
    AnyModuleAction,
    ModuleAccess,
    ModuleAction,
    Requirement,
    RoleSet,
)

logger = logging.getLogger(__name__)


class Evaluator:
    def __init__(self, matrix: PermissionMatrix, decision_log: DecisionLog | None = None) -> None:
        self._matrix = matrix
        self._log = decision_log or DecisionLog()

    @property
    def matrix(self) -> PermissionMatrix:
        return self._matrix

    def evaluate(
        self,
        requirement: Requirement,
        identity: CallerIdentity,
        policy_name: str | None = None,
    ) -> Decision:
        if not isinstance(requirement, REQUIREMENT_TYPES):
            raise TypeError(f"unsupported requirement type: {type(requirement).__name__}")

        if not identity.authenticated:
            decision = denied(requirement, identity, DecisionReason.UNAUTHENTICATED, policy_name=policy_name)
        elif not identity.roles:
            decision = denied(requirement, identity, DecisionReason.NO_ROLES, policy_name=policy_name)
        else:
            decision = self._evaluate_roles(requirement, identity, policy_name)

        self._log.record(decision)
        return decision

    def _evaluate_roles(
        self,
        requirement: Requirement,
        identity: CallerIdentity,
        policy_name: str | None,
    ) -> Decision:
        unparsed: list[str] = []
        parsed_any = False

        for claim in identity.roles:
            role = parse_role(claim)
            if role is None:
                unparsed.append(claim)
                logger.warning(
                    "Authorization check for %s (%s): invalid role %r found in claims for %s",
                    identity.display_name,
                    identity.user_id,
                    claim,
                    requirement.describe(),
                )
                continue

            parsed_any = True
            satisfied, module = self._satisfies(requirement, role)
            if satisfied:
                return granted(
                    requirement,
                    identity,
                    role,
                    unparsed=tuple(unparsed),
                    module=module,
                    policy_name=policy_name,
                )

        reason = DecisionReason.NOT_PERMITTED if parsed_any else DecisionReason.NO_VALID_ROLES
        return denied(requirement, identity, reason, unparsed=tuple(unparsed), policy_name=policy_name)

    def _satisfies(self, requirement: Requirement, role: Role) -> tuple[bool, Module | None]:
        """Test one role against one requirement. Returns (satisfied, module found for cross-module checks)."""

        if isinstance(requirement, ModuleAction):
            return self._matrix.has_permission(role, requirement.module, requirement.action), None

        if isinstance(requirement, ModuleAccess):
            return requirement.module in self._matrix.accessible_modules(role), None

        if isinstance(requirement, RoleSet):
            return role in requirement.allowed_roles, None

        if isinstance(requirement, AnyModuleAction):
            accessible = self._matrix.accessible_modules(role)
            # Declaration order keeps the reported module stable across processes.
            for module in Module:
                if module in accessible and self._matrix.has_permission(role, module, requirement.action):
                    return True, module
            return False, None

        raise TypeError(f"unsupported requirement type: {type(requirement).__name__}")


# ---- Decision API --------------------------------------------------------------------


@dataclass(frozen=True)
class AuthorizationResult:
    """What the routing layer gets back. Reasons stay in the decision log."""

    granted: bool

    def __bool__(self) -> bool:
        return self.granted


class Authorizer:
    """
    Resolves a policy name through the registry and evaluates it.

    Usage:
        authorizer = build_authorizer()
        authorizer.evaluate("ModulePermission.IncidentManagement.Create", identity).granted
    """

    def __init__(self, registry: PolicyRegistry, evaluator: Evaluator) -> None:
        self._registry = registry
        self._evaluator = evaluator

    @property
    def registry(self) -> PolicyRegistry:
        return self._registry

    @property
    def matrix(self) -> PermissionMatrix:
        return self._evaluator.matrix

    def decide(self, policy_name: str, identity: CallerIdentity) -> Decision:
        """Full decision, for in-process diagnostics and tests."""
        requirement = self._registry.require(policy_name)
        return self._evaluator.evaluate(requirement, identity, policy_name=policy_name)

    def evaluate(self, policy_name: str, identity: CallerIdentity) -> AuthorizationResult:
        return AuthorizationResult(granted=self.decide(policy_name, identity).granted)


def build_authorizer(
    matrix: PermissionMatrix | None = None,
    decision_log: DecisionLog | None = None,
) -> Authorizer:
    """Build matrix (built-in table unless given), registry and evaluator in one step."""
    matrix = matrix or build_default_matrix()
    registry = build_policy_registry()
    return Authorizer(registry, Evaluator(matrix, decision_log))
