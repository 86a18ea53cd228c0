from __future__ import annotations

from fastapi import APIRouter, Depends

from module_authz.engine.enums import Module, Role, parse_role
from module_authz.engine.evaluator import Authorizer
from module_authz.engine.identity import CallerIdentity
from module_authz.schemas.permissions import PermissionsOut
from module_authz.security.decorators import require_module_access
from module_authz.security.dependencies import get_authorizer, get_current_identity

router = APIRouter(prefix="/me", tags=["permissions"])


@router.get("/permissions", response_model=PermissionsOut)
@require_module_access(Module.DASHBOARD)
def my_permissions(
    identity: CallerIdentity = Depends(get_current_identity),
    authorizer: Authorizer = Depends(get_authorizer),
) -> PermissionsOut:
    # Unrecognised claims are left out; they grant nothing.
    roles: list[Role] = []
    for claim in identity.roles:
        role = parse_role(claim)
        if role is not None and role not in roles:
            roles.append(role)

    matrix = authorizer.matrix
    accessible: set[Module] = set()
    for role in roles:
        accessible |= matrix.accessible_modules(role)

    return PermissionsOut(
        user_id=identity.user_id,
        display_name=identity.display_name,
        roles=[role.value for role in roles],
        modules=[module.value for module in Module if module in accessible],
        permissions=sorted(matrix.effective_permissions(roles)),
    )
