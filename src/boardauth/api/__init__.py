"""HTTP and WebSocket routes."""

from boardauth.api.router import api_router


__all__ = ["api_router"]
