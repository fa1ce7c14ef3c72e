"""
API Routes - Combines all route modules into single router.

Each area keeps the versioned prefix the web client calls:
/api/v1/user, /api/v2/student, /api/v3/startup, /api/v4/project
"""

from fastapi import APIRouter

from app.api.routes.auth_routes import router as auth_router
from app.api.routes.student_routes import router as student_router
from app.api.routes.startup_routes import router as startup_router
from app.api.routes.project_routes import router as project_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router, prefix="/v1")
api_router.include_router(student_router, prefix="/v2")
api_router.include_router(startup_router, prefix="/v3")
api_router.include_router(project_router, prefix="/v4")
