"""
Campus Marketplace - Main Application

FastAPI backend with:
- MongoDB for students, startups and projects
- JWT access / refresh tokens (header or cookie)
- Cloudinary for resumes, profile pictures and logos
- Uniform {statusCode, data, message, success} envelopes

Run: uvicorn app.main:app --reload
"""

from contextlib import asynccontextmanager

# structlog must be configured before the rest of the app is imported
from app.core.logging import configure_structlog
from app.core.config import get_settings

settings = get_settings()
configure_structlog(
    log_level="DEBUG" if settings.debug else settings.log_level,
    json_logs=not settings.debug,
)

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import api_router
from app.core.errors import ApiError, InternalError, InvalidInput
from app.db.mongodb import init_mongo_indexes, test_mongo_connection
from app.utils.validation import first_message, format_errors

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
    except PyMongoError as e:
        logger.warning("mongo_index_init_failed", error=str(e))
    logger.info("startup_complete", debug=settings.debug)
    yield


# Create FastAPI app
app = FastAPI(
    title="Campus Marketplace",
    description="""
    Freelance marketplace connecting students and startups.

    ## Features
    - **Authentication**: JWT access + refresh tokens for students and startups
    - **Profiles**: Profile management, resume / picture / logo uploads
    - **Projects**: Startups post projects, students apply
    - **Applicants**: Owning startup accepts or rejects applicants
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# ERROR ENVELOPES
# ============================================================

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, status_code=exc.status_code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = format_errors(exc.errors())
    error = InvalidInput(first_message(errors), errors=errors)
    return JSONResponse(status_code=error.status_code, content=error.to_envelope())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    error = ApiError(str(exc.detail))
    error.status_code = exc.status_code
    return JSONResponse(status_code=exc.status_code, content=error.to_envelope(), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_exception", path=request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_envelope())


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
