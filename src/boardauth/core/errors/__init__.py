"""Error handling module with RFC 7807 Problem Details."""

from boardauth.core.errors.exceptions import (
    AppException,
    ConflictError,
    ForbiddenError,
    RateLimitError,
    UnauthorizedError,
)
from boardauth.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    problem_response,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "ConflictError",
    # Handlers
    "FieldError",
    "ForbiddenError",
    "ProblemDetail",
    "RateLimitError",
    "UnauthorizedError",
    "problem_response",
    "register_exception_handlers",
]
