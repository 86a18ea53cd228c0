from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status

from module_authz.engine.evaluator import Authorizer
from module_authz.engine.identity import CallerIdentity
from module_authz.security.auth import get_caller_identity
from module_authz.security.decorators import bound_policy, is_public

logger = logging.getLogger(__name__)

NOT_AUTHORIZED = "Not authorized"
AUTHENTICATION_REQUIRED = "Authentication required"


def get_authorizer(request: Request) -> Authorizer:
    authorizer = getattr(request.app.state, "authorizer", None)
    if authorizer is None:
        raise RuntimeError("Authorizer not built. Did app startup run?")
    return authorizer


def get_current_identity(request: Request) -> CallerIdentity:
    identity = getattr(request.state, "identity", None)
    if identity is None or not identity.authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=AUTHENTICATION_REQUIRED)
    return identity


def enforce_authorization(
    request: Request,
    authorizer: Authorizer = Depends(get_authorizer),
) -> None:
    """
    Global authorization dependency.

    Why dependency (not middleware)?
    - Runs after routing, so the endpoint's bound policy name is available.
    - Requires no changes to route handlers beyond the binding decorator.

    Outcomes never carry the reason: 401 for a missing identity, a generic
    403 for everything else. Details are in the decision log only.
    """

    endpoint = request.scope.get("endpoint")
    if endpoint is not None and is_public(endpoint):
        return

    identity = get_caller_identity(request)
    request.state.identity = identity

    policy_name = bound_policy(endpoint) if endpoint is not None else None
    if policy_name is None:
        # No silent allow for an endpoint someone forgot to bind.
        logger.warning("No authorization policy bound (denied) path=%s method=%s", request.url.path, request.method)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_AUTHORIZED)

    result = authorizer.evaluate(policy_name, identity)
    if result.granted:
        return

    if not identity.authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=AUTHENTICATION_REQUIRED)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_AUTHORIZED)
