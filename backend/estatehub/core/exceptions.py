"""
Domain error taxonomy.

Services raise these instead of HTTP exceptions; the web layer maps them to
status codes in ``estatehub.api.errors``. Messages are caller-facing and must
never carry token material or say which validity check failed.
"""
from typing import Any, Optional


class AppError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str = "Internal server error",
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class UnauthorizedError(AppError):
    """Credential or token rejected."""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AccountLockedError(UnauthorizedError):
    """Too many failed login attempts for this identifier."""

    def __init__(self, retry_after: int, message: str = "Too many failed attempts. Try again later."):
        super().__init__(message)
        self.retry_after = retry_after
        self.details = {"retry_after": retry_after}


class ForbiddenError(AppError):
    """Authenticated caller acting on another principal's resource."""

    status_code = 403

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class ValidationError(AppError):
    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message, details={"field": field})
        self.field = field


class ConflictError(AppError):
    status_code = 409

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


class ConfigurationError(AppError):
    """
    Missing or unusable configuration detected at startup.

    Raised while constructing services, never per request.
    """

    def __init__(self, message: str):
        super().__init__(message, status_code=500)
