"""
Authentication Routes

POST /user/register/student - Register a student
POST /user/register/startup - Register a startup (multipart, optional logo)
POST /user/login - Login and get access + refresh tokens
POST /user/logout - Clear refresh token
POST /user/refresh-token - Rotate tokens
"""

from typing import Optional

import structlog
from jose import JWTError
from pymongo.errors import PyMongoError
from fastapi import APIRouter, Body, Depends, File, Form, Request, Response, UploadFile

from app.api.deps import get_current_principal, get_identity_service
from app.core.auth import (
    ACCESS_COOKIE, REFRESH_COOKIE, create_access_token, create_refresh_token, decode_refresh_token
)
from app.core.authorization import Principal
from app.core.config import get_settings
from app.core.errors import Conflict, InternalError, Unauthenticated
from app.schemas.schemas import (
    ApiResponse, LoginRequest, PrincipalKind, RefreshTokenRequest, StartupRegister, StudentRegister
)
from app.services.identity_service import IdentityService
from app.services.upload_service import UploadService, get_upload_service
from app.utils.file_upload import save_upload_to_temp
from app.utils.serialization import serialize_doc
from app.utils.validation import validate_payload

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/user", tags=["Authentication"])


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    settings = get_settings()
    options = {"httponly": True, "secure": settings.cookie_secure, "samesite": "strict"}
    response.set_cookie(ACCESS_COOKIE, access_token, **options)
    response.set_cookie(REFRESH_COOKIE, refresh_token, **options)


def _issue_tokens(identity: IdentityService, user: dict, response: Response) -> dict:
    """Create an access/refresh pair, remember the refresh token, set cookies."""
    kind = PrincipalKind(user["role"])
    user_id = str(user["_id"])
    try:
        access_token = create_access_token(user_id, kind.value, user.get("email", ""))
        refresh_token = create_refresh_token(user_id, kind.value)
        identity.store_refresh_token(kind, user_id, refresh_token)
    except (JWTError, PyMongoError) as e:
        logger.exception("token_issue_failed", principal_id=user_id)
        raise InternalError("Something went wrong while generating refresh and access token") from e

    _set_auth_cookies(response, access_token, refresh_token)
    return {"user": serialize_doc(user), "accessToken": access_token, "refreshToken": refresh_token}


@router.post("/register/student", response_model=ApiResponse, status_code=201)
async def register_student(
    response: Response,
    payload: dict = Body(...),
    identity: IdentityService = Depends(get_identity_service),
):
    """Register a student and log them in."""
    data = validate_payload(StudentRegister, payload)
    user = identity.register_student(data)
    tokens = _issue_tokens(identity, user, response)
    return ApiResponse(statusCode=201, data=tokens, message="Student registered successfully")


@router.post("/register/startup", response_model=ApiResponse, status_code=201)
async def register_startup(
    response: Response,
    email: str = Form(None),
    password: str = Form(None),
    name: str = Form(None),
    founderName: str = Form(None),
    description: str = Form(None),
    website: Optional[str] = Form(None),
    domain: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    identity: IdentityService = Depends(get_identity_service),
    uploader: UploadService = Depends(get_upload_service),
):
    """Register a startup (multipart form). The optional logo goes to the media host."""
    form = {
        "email": email, "password": password, "name": name, "founderName": founderName,
        "description": description, "website": website or None, "domain": domain or None,
    }
    data = validate_payload(StartupRegister, {k: v for k, v in form.items() if v is not None})

    # Fail on a duplicate email before paying for an upload
    if identity.email_in_use(data.email):
        raise Conflict("User with email already exists")

    logo_url = None
    if logo is not None and logo.filename:
        path, mime_type = await save_upload_to_temp(logo, "image")
        logo_url = uploader.upload(path, mime_type)

    user = identity.register_startup(data, logo_url=logo_url)
    tokens = _issue_tokens(identity, user, response)
    return ApiResponse(statusCode=201, data=tokens, message="Startup registered successfully")


@router.post("/login", response_model=ApiResponse)
async def login(
    request: LoginRequest,
    response: Response,
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Login as either kind and receive tokens.

    Include token in requests: Authorization: Bearer <token>
    """
    user = identity.authenticate(request.email, request.password)
    tokens = _issue_tokens(identity, user, response)
    return ApiResponse(data=tokens, message="User logged in successfully")


@router.post("/logout", response_model=ApiResponse)
async def logout(
    response: Response,
    principal: Principal = Depends(get_current_principal),
    identity: IdentityService = Depends(get_identity_service),
):
    """Forget the refresh token and clear auth cookies."""
    identity.clear_refresh_token(principal.kind, principal.id)
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    logger.info("principal_logged_out", principal_id=principal.id)
    return ApiResponse(data={}, message="User logged out successfully")


@router.post("/refresh-token", response_model=ApiResponse)
async def refresh_token(
    request: Request,
    response: Response,
    body: Optional[RefreshTokenRequest] = None,
    identity: IdentityService = Depends(get_identity_service),
):
    """Rotate tokens. The refresh token comes from the cookie or the body."""
    token = request.cookies.get(REFRESH_COOKIE) or (body.refreshToken if body else None)
    if not token:
        raise Unauthenticated("Unauthorized request")

    payload = decode_refresh_token(token)
    try:
        kind = PrincipalKind(payload["kind"])
    except ValueError:
        raise Unauthenticated("Invalid refresh token")

    user = identity.verify_refresh_token(kind, payload["sub"], token)
    tokens = _issue_tokens(identity, user, response)
    return ApiResponse(data=tokens, message="Access token refreshed")
