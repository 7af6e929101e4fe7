"""Database layer - session management and base models."""

from boardauth.core.database.base import Base, TimestampMixin, UUIDMixin
from boardauth.core.database.session import (
    create_engine,
    create_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "create_engine",
    "create_session_factory",
    "get_db",
]
