"""Repositories for users and refresh sessions."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from boardauth.modules.users.models import RefreshSession, User


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID populated
        """
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID.

        Args:
            user_id: The user's UUID

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        """Get a user by username.

        Args:
            username: The login name

        Returns:
            User if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()


class RefreshSessionRepository:
    """Repository for RefreshSession database operations.

    Lookups go through the unique ``session_id`` column.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, refresh_session: RefreshSession) -> RefreshSession:
        """Persist a new refresh session."""
        self.session.add(refresh_session)
        await self.session.flush()
        await self.session.refresh(refresh_session)
        return refresh_session

    async def get_by_session_id(self, session_id: str) -> RefreshSession | None:
        """Get a refresh session by its session id.

        Returns:
            RefreshSession if found, None otherwise
        """
        result = await self.session.execute(
            select(RefreshSession).where(RefreshSession.session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def update_token(
        self,
        session_id: str,
        token_hash: str,
        expires_at: datetime,
    ) -> int:
        """Overwrite the token hash and expiry of a session.

        Returns:
            Number of rows updated (0 or 1)
        """
        result = await self.session.execute(
            update(RefreshSession)
            .where(RefreshSession.session_id == session_id)
            .values(token_hash=token_hash, expires_at=expires_at)
        )
        return result.rowcount

    async def delete_by_session_id(self, session_id: str) -> int:
        """Delete a session by session id.

        Returns:
            Number of rows deleted (0 or 1)
        """
        result = await self.session.execute(
            delete(RefreshSession).where(RefreshSession.session_id == session_id)
        )
        return result.rowcount

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete every session belonging to a user.

        Returns:
            Number of sessions deleted
        """
        result = await self.session.execute(
            delete(RefreshSession).where(RefreshSession.user_id == user_id)
        )
        return result.rowcount

    async def delete_expired(self, before: datetime) -> int:
        """Delete sessions that expired before the given time.

        Returns:
            Number of sessions deleted
        """
        result = await self.session.execute(
            delete(RefreshSession).where(RefreshSession.expires_at < before)
        )
        return result.rowcount
