"""
Error taxonomy for the booking platform.

Every business-rule violation is raised as one of these ``HTTPException``
subclasses so routers and services can raise them the same way they raise
``HTTPException`` and the app-level handler renders them in the standard
response envelope.
"""

from typing import Optional

from fastapi import HTTPException, status


class BooklyError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[list] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(status_code=self.status_code, detail=self.message)


class ValidationError(BooklyError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InvalidTransition(BooklyError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid status transition"

    def __init__(self, current: str, attempted: str, message: Optional[str] = None):
        self.current = current
        self.attempted = attempted
        super().__init__(message or f"Cannot change status from {current} to {attempted}")


class Unauthenticated(BooklyError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized to access this route"


class Forbidden(BooklyError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized to perform this action"


class NotFound(BooklyError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Conflict(BooklyError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class Locked(BooklyError):
    status_code = status.HTTP_423_LOCKED
    default_message = "Account is temporarily locked"


class Internal(BooklyError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


class InvalidConfiguration(ValueError):
    """Raised by the pure scheduling layer for unusable slot parameters"""
