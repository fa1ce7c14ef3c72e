"""
Startup Routes

GET /startup/profile - Get own profile
GET /startup/profile/{id} - Get a startup's profile
PUT /startup/profile/update - Update own profile
POST /startup/profile/logo/upload - Upload or replace the logo
DELETE /startup/profile/delete - Delete own account (projects are kept)
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, File, Response, UploadFile

from app.api.deps import get_identity_service, require_startup
from app.core import authorization as gate
from app.core.auth import ACCESS_COOKIE, REFRESH_COOKIE
from app.core.authorization import Principal
from app.schemas.schemas import ApiResponse, PrincipalKind, StartupProfileUpdate
from app.services.identity_service import IdentityService
from app.services.upload_service import UploadService, get_upload_service
from app.utils.file_upload import save_upload_to_temp
from app.utils.serialization import serialize_doc
from app.utils.validation import validate_payload

router = APIRouter(prefix="/startup", tags=["Startups"])


@router.get("/profile", response_model=ApiResponse)
async def get_own_profile(
    startup: Principal = Depends(require_startup),
    identity: IdentityService = Depends(get_identity_service),
):
    """Get current startup's profile."""
    profile = identity.get_profile(PrincipalKind.startup, startup.id)
    return ApiResponse(data=serialize_doc(profile), message="Startup profile fetched successfully")


@router.put("/profile/update", response_model=ApiResponse)
async def update_profile(
    payload: Any = Body(None),
    startup: Principal = Depends(require_startup),
    identity: IdentityService = Depends(get_identity_service),
):
    """Update own profile. Only name, founderName, description, website, domain."""
    gate.enforce(gate.can_mutate_profile(startup, startup.id))
    data = validate_payload(StartupProfileUpdate, payload)
    profile = identity.update_startup_profile(startup.id, data)
    return ApiResponse(data=serialize_doc(profile), message="Startup profile updated successfully")


@router.post("/profile/logo/upload", response_model=ApiResponse)
async def upload_logo(
    logo: UploadFile = File(None),
    startup: Principal = Depends(require_startup),
    identity: IdentityService = Depends(get_identity_service),
    uploader: UploadService = Depends(get_upload_service),
):
    """Upload a logo to the media host and store its URL."""
    path, mime_type = await save_upload_to_temp(logo, "image")
    url = uploader.upload(path, mime_type)
    identity.set_startup_logo(startup.id, url)
    return ApiResponse(data={"logoUrl": url}, message="Logo uploaded successfully")


@router.delete("/profile/delete", response_model=ApiResponse)
async def delete_account(
    response: Response,
    startup: Principal = Depends(require_startup),
    identity: IdentityService = Depends(get_identity_service),
):
    """Delete own account. Posted projects remain with an orphaned owner."""
    gate.enforce(gate.can_mutate_profile(startup, startup.id))
    identity.delete_principal(PrincipalKind.startup, startup.id)
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return ApiResponse(data={"deletedStartupId": startup.id}, message="Startup account deleted successfully")


@router.get("/profile/{startup_id}", response_model=ApiResponse)
async def get_profile(
    startup_id: str,
    startup: Principal = Depends(require_startup),
    identity: IdentityService = Depends(get_identity_service),
):
    """Get a startup's public profile."""
    profile = identity.get_profile(PrincipalKind.startup, startup_id)
    return ApiResponse(data=serialize_doc(profile), message="Startup profile fetched successfully")
