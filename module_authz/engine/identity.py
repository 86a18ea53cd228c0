"""Caller identity as seen by the evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class CallerIdentity:
    """
    Already-authenticated caller, or the anonymous caller.

    ``roles`` keeps the claim strings exactly as presented and in order, so
    decisions are reproducible and denials can log every attempted claim.
    """

    user_id: str | None
    """Stable identifier from the identity provider (None when anonymous)."""

    display_name: str = "Unknown"
    """For logs only; never used for authorization."""

    roles: tuple[str, ...] = ()
    """Raw role claims, unparsed."""

    authenticated: bool = True

    @classmethod
    def anonymous(cls) -> CallerIdentity:
        return cls(user_id=None, display_name="Unknown", roles=(), authenticated=False)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable dict."""
        return {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "roles": list(self.roles),
            "authenticated": self.authenticated,
        }


def identity_from_claims(payload: Mapping[str, Any] | None) -> CallerIdentity:
    """
    Build a ``CallerIdentity`` from an already-validated claims mapping.

    Claim mapping notes:

    * **oid** / **sub** / **nameid**: user id, first one present wins.
    * **name** / **preferred_username**: display name, for logs only.
    * **roles** / **role**: a list of strings or a single string.

    A missing or empty payload means the caller is not authenticated.
    """

    if not payload:
        return CallerIdentity.anonymous()

    user_id = payload.get("oid") or payload.get("sub") or payload.get("nameid")
    if user_id is not None:
        user_id = str(user_id)

    display_name = payload.get("name") or payload.get("preferred_username") or "Unknown"

    raw_roles = payload.get("roles")
    if raw_roles is None:
        raw_roles = payload.get("role")

    roles: list[str] = []
    if isinstance(raw_roles, (list, tuple)):
        roles = [str(r) for r in raw_roles]
    elif isinstance(raw_roles, str):
        roles = [raw_roles]

    return CallerIdentity(
        user_id=user_id,
        display_name=str(display_name),
        roles=tuple(roles),
        authenticated=True,
    )
