"""
FastAPI dependencies - services and the authenticated principal.

Usage:
    @router.get("/protected")
    async def route(principal: Principal = Depends(get_current_principal)):
        ...
"""

from typing import Optional

from fastapi import Depends, Request

from app.core import authorization as gate
from app.core.auth import decode_access_token, extract_access_token
from app.core.authorization import Principal
from app.core.errors import Unauthenticated
from app.schemas.schemas import PrincipalKind
from app.services.identity_service import IdentityService
from app.services.project_service import ProjectService


def get_identity_service() -> IdentityService:
    return IdentityService()


def get_project_service(identity: IdentityService = Depends(get_identity_service)) -> ProjectService:
    return ProjectService(identity=identity)


def get_optional_principal(
    request: Request,
    identity: IdentityService = Depends(get_identity_service),
) -> Optional[Principal]:
    """Resolve the caller if a token was sent; a bad token is still an error."""
    token = extract_access_token(request)
    if not token:
        return None

    payload = decode_access_token(token)
    try:
        kind = PrincipalKind(payload["kind"])
    except ValueError:
        raise Unauthenticated("Invalid role in token")

    profile = identity.find_principal(kind, payload["sub"])
    if profile is None:
        raise Unauthenticated("User not found")

    return Principal(id=str(profile["_id"]), kind=kind, email=profile.get("email", ""), profile=profile)


def get_current_principal(principal: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    if principal is None:
        raise Unauthenticated("Unauthorized request")
    return principal


def require_student(principal: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    """Dependency - Require student kind."""
    gate.enforce(gate.require_kind(principal, PrincipalKind.student))
    return principal


def require_startup(principal: Optional[Principal] = Depends(get_optional_principal)) -> Principal:
    """Dependency - Require startup kind."""
    gate.enforce(gate.require_kind(principal, PrincipalKind.startup))
    return principal
