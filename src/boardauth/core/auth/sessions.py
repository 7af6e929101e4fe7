"""Refresh session lifecycle.

A refresh session is the durable half of authentication: the cookie
holds its opaque ``session_id``, the database holds a hash of the
current refresh token value. Each operation runs in its own short
transaction so the manager can be used from request handlers, the
background sweeper and the ARQ worker alike.
"""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from boardauth.core.auth.passwords import hash_token, token_matches
from boardauth.core.constants import SESSION_ID_BYTES
from boardauth.modules.users.models import RefreshSession, SessionTokenType
from boardauth.modules.users.repos import RefreshSessionRepository


logger = structlog.get_logger()


def generate_session_id() -> str:
    """Generate an opaque, unguessable session id."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes coming back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_expired(refresh_session: RefreshSession, now: datetime | None = None) -> bool:
    """Check whether a session is past its expiry."""
    now = now or datetime.now(UTC)
    return as_utc(refresh_session.expires_at) <= now


@dataclass(frozen=True)
class CreatedSession:
    """Identifiers handed back for cookie issuance."""

    session_id: str
    expires_at: datetime


class RefreshSessionManager:
    """Create, look up, rotate and delete refresh sessions.

    A lookup miss is a normal ``None`` result. Storage errors always
    propagate to the caller.

    Rotation is last-writer-wins: two concurrent rotations of the same
    session both succeed and the later one determines the current
    token value.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def create(
        self,
        user_id: UUID,
        refresh_token: str,
        expires_at: datetime,
        token_type: SessionTokenType = SessionTokenType.LOCAL,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> CreatedSession:
        """Persist a new refresh session.

        Args:
            user_id: Owner of the session
            refresh_token: Raw refresh token value (stored hashed)
            expires_at: When the session expires
            token_type: Origin of the session
            user_agent: Client user agent
            ip_address: Client IP address

        Returns:
            The new session id and its expiry
        """
        session_id = generate_session_id()
        async with self.session_factory() as db:
            repo = RefreshSessionRepository(db)
            await repo.create(
                RefreshSession(
                    session_id=session_id,
                    user_id=user_id,
                    token_hash=hash_token(refresh_token),
                    token_type=token_type,
                    expires_at=expires_at,
                    user_agent=user_agent,
                    ip_address=ip_address,
                )
            )
            await db.commit()

        logger.info(
            "refresh_session_created",
            session=session_id[:8] + "...",
            user_id=str(user_id),
            token_type=token_type.value,
        )
        return CreatedSession(session_id=session_id, expires_at=expires_at)

    async def find(self, session_id: str) -> RefreshSession | None:
        """Look up a refresh session by its session id.

        Returns:
            RefreshSession if found, None otherwise
        """
        async with self.session_factory() as db:
            return await RefreshSessionRepository(db).get_by_session_id(session_id)

    async def rotate(
        self,
        session_id: str,
        new_refresh_token: str,
        new_expires_at: datetime,
    ) -> bool:
        """Replace the refresh token value and expiry in place.

        The previous value stops matching as soon as this commits.

        Returns:
            True if the session existed and was updated
        """
        async with self.session_factory() as db:
            updated = await RefreshSessionRepository(db).update_token(
                session_id,
                hash_token(new_refresh_token),
                new_expires_at,
            )
            await db.commit()

        logger.debug(
            "refresh_session_rotated",
            session=session_id[:8] + "...",
            updated=bool(updated),
        )
        return updated > 0

    async def delete(self, session_id: str) -> None:
        """Delete a refresh session. Deleting a missing session is a no-op."""
        async with self.session_factory() as db:
            deleted = await RefreshSessionRepository(db).delete_by_session_id(session_id)
            await db.commit()

        if deleted:
            logger.info("refresh_session_deleted", session=session_id[:8] + "...")

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete every refresh session of a user.

        Returns:
            Number of sessions deleted
        """
        async with self.session_factory() as db:
            deleted = await RefreshSessionRepository(db).delete_all_for_user(user_id)
            await db.commit()

        logger.info("refresh_sessions_revoked", user_id=str(user_id), count=deleted)
        return deleted

    async def delete_expired(self, now: datetime | None = None) -> int:
        """Delete all sessions past their expiry.

        Returns:
            Number of sessions deleted
        """
        now = now or datetime.now(UTC)
        async with self.session_factory() as db:
            deleted = await RefreshSessionRepository(db).delete_expired(now)
            await db.commit()

        logger.info("expired_refresh_sessions_deleted", count=deleted)
        return deleted

    @staticmethod
    def token_matches(refresh_session: RefreshSession, refresh_token: str) -> bool:
        """Check a presented refresh token against the session's current value."""
        return token_matches(refresh_token, refresh_session.token_hash)
