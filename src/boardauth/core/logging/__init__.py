"""Logging module with structured logging and request tracking."""

from boardauth.core.logging.middleware import RequestLoggingMiddleware, get_client_ip
from boardauth.core.logging.setup import configure_logging


__all__ = [
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_client_ip",
]
