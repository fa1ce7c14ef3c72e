"""
Student Routes

GET /student/profile - Get own profile
GET /student/profile/{id} - Get a student's profile
PUT /student/profile/update - Update own profile
POST /student/profile/picture/upload - Upload profile picture
POST /student/upload-resume - Upload resume
DELETE /student/profile/delete - Delete own account
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, File, Response, UploadFile

from app.api.deps import get_identity_service, require_student
from app.core import authorization as gate
from app.core.auth import ACCESS_COOKIE, REFRESH_COOKIE
from app.core.authorization import Principal
from app.schemas.schemas import ApiResponse, PrincipalKind, StudentProfileUpdate
from app.services.identity_service import IdentityService
from app.services.upload_service import UploadService, get_upload_service
from app.utils.file_upload import save_upload_to_temp
from app.utils.serialization import serialize_doc
from app.utils.validation import validate_payload

router = APIRouter(prefix="/student", tags=["Students"])


@router.get("/profile", response_model=ApiResponse)
async def get_own_profile(
    student: Principal = Depends(require_student),
    identity: IdentityService = Depends(get_identity_service),
):
    """Get current student's profile."""
    profile = identity.get_profile(PrincipalKind.student, student.id)
    return ApiResponse(data=serialize_doc(profile), message="Student profile fetched successfully")


@router.put("/profile/update", response_model=ApiResponse)
async def update_profile(
    payload: Any = Body(None),
    student: Principal = Depends(require_student),
    identity: IdentityService = Depends(get_identity_service),
):
    """Update own profile. Only name, skills, about, education, department, year."""
    gate.enforce(gate.can_mutate_profile(student, student.id))
    data = validate_payload(StudentProfileUpdate, payload)
    profile = identity.update_student_profile(student.id, data)
    return ApiResponse(data=serialize_doc(profile), message="Student profile updated successfully")


@router.post("/profile/picture/upload", response_model=ApiResponse)
async def upload_profile_picture(
    profilePicture: UploadFile = File(None),
    student: Principal = Depends(require_student),
    identity: IdentityService = Depends(get_identity_service),
    uploader: UploadService = Depends(get_upload_service),
):
    """Upload a profile picture to the media host and store its URL."""
    path, mime_type = await save_upload_to_temp(profilePicture, "image")
    url = uploader.upload(path, mime_type)
    identity.set_student_file_url(student.id, "profilePictureUrl", url)
    return ApiResponse(data={"profilePictureUrl": url}, message="Profile picture uploaded successfully")


@router.post("/upload-resume", response_model=ApiResponse)
async def upload_resume(
    resume: UploadFile = File(None),
    student: Principal = Depends(require_student),
    identity: IdentityService = Depends(get_identity_service),
    uploader: UploadService = Depends(get_upload_service),
):
    """Upload a resume (PDF/DOC/DOCX) to the media host and store its URL."""
    path, mime_type = await save_upload_to_temp(resume, "resume")
    url = uploader.upload(path, mime_type)
    identity.set_student_file_url(student.id, "resumeUrl", url)
    return ApiResponse(data={"resumeUrl": url}, message="Resume uploaded successfully")


@router.delete("/profile/delete", response_model=ApiResponse)
async def delete_account(
    response: Response,
    student: Principal = Depends(require_student),
    identity: IdentityService = Depends(get_identity_service),
):
    """Delete own account. Existing applications stay on their projects."""
    gate.enforce(gate.can_mutate_profile(student, student.id))
    identity.delete_principal(PrincipalKind.student, student.id)
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return ApiResponse(data={"deletedStudentId": student.id}, message="Student account deleted successfully")


@router.get("/profile/{student_id}", response_model=ApiResponse)
async def get_profile(
    student_id: str,
    student: Principal = Depends(require_student),
    identity: IdentityService = Depends(get_identity_service),
):
    """Get a student's public profile."""
    profile = identity.get_profile(PrincipalKind.student, student_id)
    return ApiResponse(data=serialize_doc(profile), message="Student profile fetched successfully")
