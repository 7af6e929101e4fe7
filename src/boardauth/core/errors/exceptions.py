"""Domain exceptions for the application.

These exceptions represent business-logic errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
        headers: Extra response headers
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        self.headers: dict[str, str] = {}
        super().__init__(self.message)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Username already taken", details={"username": name})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class UnauthorizedError(AppException):
    """Raised when authentication is required but not provided or invalid.

    Example:
        raise UnauthorizedError("Invalid access token")
    """

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """Raised when the authenticated user may not perform the action."""

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class RateLimitError(AppException):
    """Raised when rate limit is exceeded.

    The ``retry_after`` hint is exposed both in the problem body and
    as a ``Retry-After`` header.

    Example:
        raise RateLimitError("Too many login attempts", retry_after=60)
    """

    message = "Rate limit exceeded"
    error_code = "rate_limit_exceeded"
    status_code = 429

    def __init__(
        self,
        message: str | None = None,
        retry_after: int | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if retry_after is not None:
            details["retry_after"] = retry_after
        super().__init__(message=message, details=details, **kwargs)
        if retry_after is not None:
            self.headers["Retry-After"] = str(retry_after)
