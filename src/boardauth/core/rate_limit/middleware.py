"""Rate limiting middleware for global request limits.

Applies the token bucket of the authenticated user, or the shared
anonymous bucket, to every HTTP request.
"""

from typing import TYPE_CHECKING, ClassVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from boardauth.core.errors import RateLimitError, problem_response
from boardauth.core.rate_limit.backend import (
    RateLimitResult,
    TokenBucketRateLimiter,
    rate_limit_key,
)


if TYPE_CHECKING:
    from starlette.types import ASGIApp


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware that applies the request rate limit.

    The identity comes from ``request.state.user_id``, which the
    identity middleware sets for requests with a valid bearer token.
    Adds standard rate limit headers to all responses.
    """

    # Paths to exclude from rate limiting
    EXCLUDED_PATHS: ClassVar[set[str]] = {
        "/health/live",
        "/health/ready",
        "/docs",
        "/redoc",
        "/openapi.json",
    }

    def __init__(self, app: "ASGIApp", limiter: TokenBucketRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request and apply rate limiting.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response with rate limit headers
        """
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        identity = rate_limit_key(getattr(request.state, "user_id", None))
        result = await self.limiter.check(identity)

        if not result.allowed:
            response: Response = problem_response(
                request,
                RateLimitError(
                    "Rate limit exceeded. Please slow down.",
                    retry_after=result.retry_after,
                ),
            )
            _add_headers(response, result)
            return response

        response = await call_next(request)
        _add_headers(response, result)
        return response


def _add_headers(response: Response, result: RateLimitResult) -> None:
    response.headers["X-RateLimit-Limit"] = str(result.limit)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
    response.headers["X-RateLimit-Reset"] = str(result.reset_time)
