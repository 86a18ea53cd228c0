"""
Per-request decisions and their audit projection.

A Decision lives for one evaluation. Only its log record persists: the
``DecisionLog`` hands it to the ``module_authz.decisions`` logger, whose
handlers decide where it goes. ``configure_decision_log`` in
``module_authz.logging_config`` puts a queue in front of the real sink so a
slow destination never delays a decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .enums import Module, Role
from .identity import CallerIdentity
from .requirements import Requirement

DECISION_LOGGER_NAME = "module_authz.decisions"


class DecisionReason(str, Enum):
    GRANTED = "granted"
    UNAUTHENTICATED = "unauthenticated"
    NO_ROLES = "no_roles"
    NO_VALID_ROLES = "no_valid_roles"
    NOT_PERMITTED = "not_permitted"


@dataclass(frozen=True)
class Decision:
    granted: bool
    reason: DecisionReason
    requirement: Requirement
    user_id: str | None
    display_name: str
    attempted_roles: tuple[str, ...]
    """Every claim presented, parsed or not, in presentation order."""

    unparsed_roles: tuple[str, ...] = ()
    granted_by: Role | None = None
    granted_in_module: Module | None = None
    """Set only for cross-module checks: the module where the action was found."""

    policy_name: str | None = None

    def __bool__(self) -> bool:
        return self.granted

    def to_log_record(self) -> dict[str, object]:
        """Structured, JSON-serializable audit record."""
        record: dict[str, object] = {
            "granted": self.granted,
            "reason": self.reason.value,
            "policy": self.policy_name,
            "requirement": self.requirement.describe(),
            "user_id": self.user_id,
            "display_name": self.display_name,
        }
        if self.granted:
            record["granted_by"] = self.granted_by.value if self.granted_by else None
            if self.granted_in_module is not None:
                record["module"] = self.granted_in_module.value
        else:
            record["attempted_roles"] = list(self.attempted_roles)
            record["unparsed_roles"] = list(self.unparsed_roles)
        return record


def granted(
    requirement: Requirement,
    identity: CallerIdentity,
    role: Role,
    *,
    unparsed: tuple[str, ...] = (),
    module: Module | None = None,
    policy_name: str | None = None,
) -> Decision:
    return Decision(
        granted=True,
        reason=DecisionReason.GRANTED,
        requirement=requirement,
        user_id=identity.user_id,
        display_name=identity.display_name,
        attempted_roles=identity.roles,
        unparsed_roles=unparsed,
        granted_by=role,
        granted_in_module=module,
        policy_name=policy_name,
    )


def denied(
    requirement: Requirement,
    identity: CallerIdentity,
    reason: DecisionReason,
    *,
    unparsed: tuple[str, ...] = (),
    policy_name: str | None = None,
) -> Decision:
    return Decision(
        granted=False,
        reason=reason,
        requirement=requirement,
        user_id=identity.user_id,
        display_name=identity.display_name,
        attempted_roles=identity.roles,
        unparsed_roles=unparsed,
        policy_name=policy_name,
    )


class DecisionLog:
    """
    Emits exactly one record per decision.

    Grants go out at INFO naming the granting role; denials at WARNING with
    every attempted claim. The structured record rides along as
    ``extra={"authz_decision": ...}``.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(DECISION_LOGGER_NAME)

    def record(self, decision: Decision) -> None:
        extra = {"authz_decision": decision.to_log_record()}
        if decision.granted:
            self._logger.info(
                "Authorization granted for %s (%s): role %r satisfies %s",
                decision.display_name,
                decision.user_id,
                decision.granted_by.value if decision.granted_by else None,
                decision.requirement.describe(),
                extra=extra,
            )
            return

        self._logger.warning(
            "Authorization denied for %s (%s): %s for %s; attempted roles [%s]",
            decision.display_name,
            decision.user_id,
            decision.reason.value,
            decision.requirement.describe(),
            ", ".join(decision.attempted_roles),
            extra=extra,
        )
