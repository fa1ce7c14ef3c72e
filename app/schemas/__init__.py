"""
Schemas module - Request/Response schemas for API endpoints.
"""
from app.schemas.schemas import (
    ApiResponse,
    ApplicantStatus,
    PrincipalKind,
    ProjectStatus,
)

__all__ = [
    "ApiResponse",
    "ApplicantStatus",
    "PrincipalKind",
    "ProjectStatus",
]
