"""
API errors - one class per error kind, each tagged with an HTTP status.

Raised by services and dependencies, rendered into the error envelope
{statusCode, message, success: false, errors} by the handlers in app.main.
"""

from typing import Any, List, Optional


class ApiError(Exception):
    """Base error carrying an HTTP-like status and a human readable message."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_envelope(self) -> dict:
        return {
            "statusCode": self.status_code,
            "message": self.message,
            "success": False,
            "errors": self.errors,
        }


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Access denied"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class InvalidInput(ApiError):
    status_code = 400
    default_message = "Invalid input"


class Conflict(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class InternalError(ApiError):
    status_code = 500
    default_message = "Internal server error"
