"""
Portal Error Taxonomy

Domain exceptions raised by the service layer. Each carries the HTTP status
code and a stable error code so routers can translate them uniformly.

    AuthenticationError        -> 401
    AuthorizationError         -> 403
    ValidationError            -> 400 (with field-level detail)
    NotFoundError              -> 404
    ConflictError              -> 409
    SessionStoreUnavailable    -> 503
"""

from dataclasses import dataclass
from typing import Any, NoReturn

from fastapi import HTTPException


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class PortalError(Exception):
    """Base exception for portal service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class AuthenticationError(PortalError):
    """Raised when a request carries no valid session."""

    def __init__(self, message: str = "Authentication required."):
        super().__init__(message=message, error_code="NOT_AUTHENTICATED", status_code=401)


class InvalidCredentialsError(AuthenticationError):
    """Raised when a login attempt uses a wrong username or password."""

    def __init__(self):
        super().__init__("Invalid username or password.")
        self.error_code = "INVALID_CREDENTIALS"


class AuthorizationError(PortalError):
    """Raised when an authenticated user lacks the role or ownership required."""

    def __init__(self, message: str = "You are not allowed to perform this action."):
        super().__init__(message=message, error_code="FORBIDDEN", status_code=403)


class ValidationError(PortalError):
    """Raised when input fails validation. Carries every violated field."""

    def __init__(self, errors: list[FieldError], message: str = "Validation failed."):
        self.errors = list(errors)
        super().__init__(message=message, error_code="VALIDATION_ERROR", status_code=400)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([FieldError(field, message)], message=f"{field}: {message}")

    @property
    def fields(self) -> list[str]:
        return [error.field for error in self.errors]

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["errors"] = [error.to_dict() for error in self.errors]
        return detail


class NotFoundError(PortalError):
    """Raised when a referenced resource does not exist."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} {resource_id} not found" if resource_id else f"{resource} not found"
        super().__init__(
            message=message,
            error_code=f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
        )


class ConflictError(PortalError):
    """Raised when a request conflicts with existing state."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message=message, error_code=error_code, status_code=409)


class SessionStoreUnavailableError(PortalError):
    """Raised when the Redis session store cannot be reached."""

    def __init__(self):
        super().__init__(
            message="Session service is temporarily unavailable. Please try again later.",
            error_code="SESSION_STORE_UNAVAILABLE",
            status_code=503,
        )


def handle_portal_error(e: PortalError) -> NoReturn:
    """Convert a service error into an HTTPException."""
    headers = {"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None
    raise HTTPException(status_code=e.status_code, detail=e.to_detail(), headers=headers) from e


def internal_server_error() -> HTTPException:
    """Generic 500 for unexpected failures. Internals are logged, never returned."""
    return HTTPException(
        status_code=500,
        detail={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred."},
    )


__all__ = [
    "FieldError",
    "PortalError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "AuthorizationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "SessionStoreUnavailableError",
    "handle_portal_error",
    "internal_server_error",
]
