"""User and refresh session database models."""

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from boardauth.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_IPV6_LENGTH,
    MAX_NAME_LENGTH,
    MAX_ROLE_LENGTH,
    MAX_SESSION_ID_LENGTH,
    MAX_USER_AGENT_LENGTH,
    MAX_USERNAME_LENGTH,
    SHA256_HEX_LENGTH,
)
from boardauth.core.database.base import Base, TimestampMixin, UUIDMixin


class SessionTokenType(str, enum.Enum):
    """Origin of a refresh session."""

    LOCAL = "local"
    OIDC = "oidc"


class User(Base, UUIDMixin, TimestampMixin):
    """User model representing an account that can log in.

    Attributes:
        username: Unique login name
        password_hash: Bcrypt-hashed password (nullable for external accounts)
        email: Optional contact address
        display_name: Optional name shown in the board UI
        role: Board role (user or admin)
        is_active: Whether the user can log in
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(MAX_USERNAME_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=True,
    )
    display_name: Mapped[str | None] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=True,
    )
    role: Mapped[str] = mapped_column(
        String(MAX_ROLE_LENGTH),
        default="user",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"


class RefreshSession(Base, UUIDMixin, TimestampMixin):
    """Persisted refresh session backing silent token renewal.

    The ``session_id`` travels in the refresh cookie. The refresh token
    value itself is only stored as a SHA-256 hash and is replaced on
    every rotation.

    Attributes:
        session_id: Opaque, unguessable lookup key
        user_id: The user this session belongs to
        token_hash: SHA-256 hash of the current refresh token value
        token_type: Whether the session came from a local login or an
            external identity provider
        expires_at: When the session stops being refreshable
        user_agent: The client user agent that created the session
        ip_address: The IP address that created the session
    """

    __tablename__ = "refresh_sessions"

    session_id: Mapped[str] = mapped_column(
        String(MAX_SESSION_ID_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(
        String(SHA256_HEX_LENGTH),
        nullable=False,
    )
    token_type: Mapped[SessionTokenType] = mapped_column(
        Enum(
            SessionTokenType,
            name="session_token_type",
            values_callable=lambda e: [member.value for member in e],
        ),
        default=SessionTokenType.LOCAL,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    user_agent: Mapped[str | None] = mapped_column(
        String(MAX_USER_AGENT_LENGTH),
        nullable=True,
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(MAX_IPV6_LENGTH),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<RefreshSession(id={self.id}, user_id={self.user_id}, "
            f"token_type={self.token_type.value})>"
        )
