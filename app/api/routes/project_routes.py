"""
Project Routes

POST /project/create - Create project (startup only)
GET /project/my-projects - Projects of the calling startup
GET /project/all-projects - List all projects, newest first
GET /project/applied-projects - Projects the calling student applied to
POST /project/apply/{project_id} - Apply (student only, once per project)
GET /project/applicants/{project_id} - List applicants (owner only)
PUT /project/applicants/{project_id}/{student_id} - Set applicant status (owner only)
PUT /project/update/{id} - Update project (owner only)
DELETE /project/delete/{id} - Delete project (owner only)
GET /project/{id} - Project details

Fixed paths are declared before /{id}.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_optional_principal, get_project_service
from app.core.authorization import Principal
from app.schemas.schemas import ApiResponse
from app.services.project_service import ProjectService
from app.utils.serialization import serialize_doc, serialize_docs

router = APIRouter(prefix="/project", tags=["Projects"])


@router.post("/create", response_model=ApiResponse, status_code=201)
async def create_project(
    payload: Any = Body(None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: ProjectService = Depends(get_project_service),
):
    """Create a new project. Only startups can create projects."""
    project = service.create(principal, payload)
    return ApiResponse(statusCode=201, data=serialize_doc(project), message="Project created successfully")


@router.get("/my-projects", response_model=ApiResponse)
async def get_my_projects(
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: ProjectService = Depends(get_project_service),
):
    """Projects posted by the calling startup."""
    projects = service.find_by_owner(principal)
    return ApiResponse(
        data={"count": len(projects), "projects": serialize_docs(projects)},
        message="Startup projects fetched successfully",
    )


@router.get("/all-projects", response_model=ApiResponse)
async def get_all_projects(service: ProjectService = Depends(get_project_service)):
    """All projects, newest first. Public."""
    projects = service.find_all()
    return ApiResponse(
        data={"count": len(projects), "projects": serialize_docs(projects)},
        message="All projects fetched successfully",
    )


@router.get("/applied-projects", response_model=ApiResponse)
async def get_applied_projects(
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: ProjectService = Depends(get_project_service),
):
    """Projects the calling student has applied to, whatever the record shape."""
    projects = service.find_by_applicant_student(principal)
    return ApiResponse(
        data={"count": len(projects), "projects": serialize_docs(projects)},
        message="Student applied projects fetched successfully",
    )


@router.post("/apply/{project_id}", response_model=ApiResponse)
async def apply_to_project(
    project_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: ProjectService = Depends(get_project_service),
):
    """Apply to a project. Students only. Cannot apply twice, even after rejection."""
    result = service.apply(principal, project_id)
    return ApiResponse(data=serialize_doc(result), message="Successfully applied to project")


@router.get("/applicants/{project_id}", response_model=ApiResponse)
async def get_project_applicants(
    project_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: ProjectService = Depends(get_project_service),
):
    """List applicants of a project. Owning startup only."""
    result = service.list_applicants(principal, project_id)
    return ApiResponse(data=serialize_doc(result), message="Project applicants fetched successfully")


@router.put("/applicants/{project_id}/{student_id}", response_model=ApiResponse)
async def update_application_status(
    project_id: str,
    student_id: str,
    payload: Any = Body(None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: ProjectService = Depends(get_project_service),
):
    """Set an applicant's status (pending / accepted / rejected). Owning startup only."""
    # The engine rejects a missing or unknown status, after the owner check
    status = payload.get("status") if isinstance(payload, dict) else None
    result = service.set_applicant_status(principal, project_id, student_id, status)
    return ApiResponse(
        data=serialize_doc(result),
        message=f"Application status updated to {status}",
    )


@router.put("/update/{project_id}", response_model=ApiResponse)
async def update_project(
    project_id: str,
    payload: Any = Body(None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: ProjectService = Depends(get_project_service),
):
    """Update a project. Only the owning startup can update."""
    project = service.update(principal, project_id, payload)
    return ApiResponse(data=serialize_doc(project), message="Project updated successfully")


@router.delete("/delete/{project_id}", response_model=ApiResponse)
async def delete_project(
    project_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: ProjectService = Depends(get_project_service),
):
    """Delete a project. Only the owning startup can delete."""
    result = service.delete(principal, project_id)
    return ApiResponse(data=result, message="Project deleted successfully")


@router.get("/{project_id}", response_model=ApiResponse)
async def get_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    """Get details of a specific project, with owner and applicants populated."""
    project = service.find_by_id(project_id)
    return ApiResponse(data=serialize_doc(project), message="Project fetched successfully")
