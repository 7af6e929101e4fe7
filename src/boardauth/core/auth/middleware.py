"""Identity and request tracing middleware.

This module provides middleware for:
- Resolving the caller's identity from a bearer token
- Request tracing with unique IDs
"""

import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from boardauth.core.auth.extraction import bearer_from_authorization


class IdentityMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the caller from the Authorization header.

    A valid access token sets ``request.state.user_id`` for the rate
    limiter and the request log. Anything else leaves the request
    anonymous; routes that require a user reject it themselves.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process the request and attach the caller's identity.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response from the handler
        """
        request.state.user_id = None

        token = bearer_from_authorization(request.headers.get("Authorization"))
        if token:
            token_data = request.app.state.components.tokens.verify(token)
            if token_data:
                request.state.user_id = token_data.subject
                structlog.contextvars.bind_contextvars(user_id=token_data.subject)

        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that adds a unique request ID to each request.

    The request ID is added to:
    - request.state.request_id
    - Response header X-Request-ID
    - Structlog context
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process the request and add request ID.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response with X-Request-ID header
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request.state.request_id = request_id
        request.state.trace_id = request_id  # Alias for error handler

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "user_id")

        response.headers["X-Request-ID"] = request_id
        return response
