from __future__ import annotations

import logging
from collections.abc import Mapping

from fastapi import Request

from module_authz.engine.identity import CallerIdentity, identity_from_claims

logger = logging.getLogger(__name__)


def get_caller_identity(request: Request) -> CallerIdentity:
    """
    Read the caller from claims the authentication layer already validated.

    - Input: `request.state.claims`, a mapping such as a decoded access token payload.
    - No claims means the caller is not authenticated; that is a deny later, not an error here.
    - Token validation itself happens upstream and is not repeated here.
    """

    claims = getattr(request.state, "claims", None)
    if claims is None:
        logger.info("No validated claims on request (unauthenticated) path=%s method=%s", request.url.path, request.method)
        return CallerIdentity.anonymous()

    if not isinstance(claims, Mapping):
        logger.warning(
            "Ignoring claims of type %s (expected a mapping) path=%s method=%s",
            type(claims).__name__,
            request.url.path,
            request.method,
        )
        return CallerIdentity.anonymous()

    return identity_from_claims(claims)
