from __future__ import annotations

from fastapi import APIRouter, Depends

from module_authz.engine.evaluator import Authorizer
from module_authz.schemas.permissions import HealthOut
from module_authz.security.decorators import public
from module_authz.security.dependencies import get_authorizer

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
@public()
def health(authorizer: Authorizer = Depends(get_authorizer)) -> HealthOut:
    return HealthOut(status="ok", policies=len(authorizer.registry))
