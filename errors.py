"""
Error types and response helpers shared by all routers
"""

from datetime import datetime
from typing import Any, List, Optional


class ApiError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message, "code": self.code}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class BadRequestError(ApiError):
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Bad request"


class ValidationError(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class UnauthorizedError(ApiError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(ApiError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Access forbidden"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"

    @classmethod
    def for_resource(cls, resource: str) -> "NotFoundError":
        return cls(f"{resource} not found")


class ConflictError(ApiError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource conflict"


class TooManyRequestsError(ApiError):
    status_code = 429
    code = "TOO_MANY_REQUESTS"
    default_message = "Too many requests"


def format_response(data: Any, message: str = "Success", **extra) -> dict:
    """Standard success envelope"""
    return {
        "success": True,
        "message": message,
        "data": data,
        **extra,
        "timestamp": datetime.now().isoformat(),
    }


def server_error_body(error: Exception, show_details: bool = False) -> dict:
    body = {"success": False, "message": "Internal server error", "code": "INTERNAL_ERROR"}
    if show_details:
        body["error"] = str(error)
    return body
