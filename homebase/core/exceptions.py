"""
Error taxonomy shared by every service.

Services raise these; the handlers in error_handler.py turn them into HTTP responses.
"""

from typing import Optional


class HomebaseError(Exception):
    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class Unauthorized(HomebaseError):
    status_code = 401
    default_code = "UNAUTHORIZED"


class Forbidden(HomebaseError):
    status_code = 403
    default_code = "FORBIDDEN"


class NotFound(HomebaseError):
    status_code = 404
    default_code = "NOT_FOUND"


class ValidationError(HomebaseError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class ConflictError(HomebaseError):
    status_code = 409
    default_code = "CONFLICT"


class UniqueViolation(ConflictError):
    """A write lost against a unique constraint in the store."""

    default_code = "UNIQUE_VIOLATION"


class InternalError(HomebaseError):
    status_code = 500
    default_code = "INTERNAL_ERROR"
