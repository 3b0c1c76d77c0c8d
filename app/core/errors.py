"""
Application error types.

Every error raised by the services derives from ``AppError`` so the HTTP
layer can render it through the standard error envelope.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors surfaced to API clients"""

    status_code = 400
    error_code = "app_error"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class StoreError(AppError):
    """The row store rejected or could not serve a request"""

    status_code = 503
    error_code = "store_error"


class StoreUnavailable(StoreError):
    """Network or connection failure talking to the store"""

    error_code = "store_unavailable"

    def __init__(self, message: str = "The service is temporarily unavailable. Please try again.", details: Any = None):
        super().__init__(message, details)


class StoreConflict(StoreError):
    """A write violated a unique key"""

    status_code = 409
    error_code = "store_conflict"


class DuplicateRegistration(AppError):
    status_code = 409
    error_code = "duplicate_registration"

    def __init__(self, event_date: str):
        super().__init__(f"You have already registered for {event_date}!", {"event_date": event_date})
        self.event_date = event_date


class ValidationError(AppError):
    status_code = 422
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class AuthFailure(AppError):
    status_code = 401
    error_code = "auth_failure"

    def __init__(self, message: str = "Invalid password"):
        super().__init__(message)


class RateLimited(AppError):
    status_code = 429
    error_code = "rate_limited"

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message)
