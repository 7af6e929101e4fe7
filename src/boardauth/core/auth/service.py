"""Authentication service for login, refresh and logout."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boardauth.core.auth.dependencies import Components, DBSession
from boardauth.core.auth.passwords import create_refresh_token, verify_password
from boardauth.core.auth.sessions import is_expired
from boardauth.core.errors import RateLimitError, UnauthorizedError
from boardauth.core.wiring import AuthComponents
from boardauth.modules.users.models import SessionTokenType, User
from boardauth.modules.users.repos import UserRepository


logger = structlog.get_logger()


@dataclass
class IssuedTokens:
    """An access token together with the refresh session backing it."""

    access_token: str
    access_token_expires_at: datetime
    session_id: str
    refresh_token: str
    refresh_token_expires_at: datetime
    user: User

    @property
    def expires_in(self) -> int:
        """Seconds until the access token expires."""
        remaining = self.access_token_expires_at - datetime.now(UTC)
        return max(0, int(remaining.total_seconds()))


class AuthService:
    """Service for authentication operations.

    Handles login, silent refresh, logout and refresh cookie
    re-establishment.
    """

    def __init__(self, components: AuthComponents, db: AsyncSession) -> None:
        self.components = components
        self.db = db
        self.user_repo = UserRepository(db)

    @property
    def _refresh_lifetime(self) -> timedelta:
        return timedelta(days=self.components.settings.refresh_token_expire_days)

    def _issue_access_token(self, user: User) -> tuple[str, datetime]:
        tokens = self.components.tokens
        expires_at = datetime.now(UTC) + tokens.expires_in
        access_token = tokens.sign(str(user.id), expires_delta=tokens.expires_in)
        return access_token, expires_at

    async def login(
        self,
        username: str,
        password: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> IssuedTokens:
        """Authenticate a user with username and password.

        Args:
            username: Login name
            password: Plain text password
            user_agent: Client user agent
            ip_address: Client IP address

        Returns:
            Access token and a new refresh session

        Raises:
            RateLimitError: If the username has too many recent attempts
            UnauthorizedError: If credentials are invalid
        """
        attempt_key = username.strip().lower()
        attempt = await self.components.login_limiter.check(attempt_key)
        if not attempt.allowed:
            logger.warning("login_rate_limited", retry_after=attempt.retry_after)
            raise RateLimitError(
                "Too many login attempts. Please try again later.",
                retry_after=attempt.retry_after,
                error_code="too_many_login_attempts",
            )

        user = await self.user_repo.get_by_username(username)
        if (
            not user
            or not user.is_active
            or not verify_password(password, user.password_hash)
        ):
            # Same delay and error whether the user exists or not
            await asyncio.sleep(self.components.settings.login_failure_delay_seconds)
            logger.info("login_failed")
            raise UnauthorizedError(
                "Invalid username or password",
                error_code="invalid_credentials",
            )

        await self.components.login_limiter.reset(attempt_key)

        access_token, access_expires_at = self._issue_access_token(user)
        refresh_token = create_refresh_token()
        created = await self.components.sessions.create(
            user_id=user.id,
            refresh_token=refresh_token,
            expires_at=datetime.now(UTC) + self._refresh_lifetime,
            token_type=SessionTokenType.LOCAL,
            user_agent=user_agent,
            ip_address=ip_address,
        )

        logger.info("login_succeeded", user_id=str(user.id))
        return IssuedTokens(
            access_token=access_token,
            access_token_expires_at=access_expires_at,
            session_id=created.session_id,
            refresh_token=refresh_token,
            refresh_token_expires_at=created.expires_at,
            user=user,
        )

    async def refresh(self, session_id: str | None) -> IssuedTokens:
        """Issue a new access token and rotate the refresh session.

        Expired sessions and sessions of vanished or deactivated users
        are deleted on the way.

        Args:
            session_id: Session id read from the refresh cookie

        Returns:
            Access token and the rotated refresh session

        Raises:
            UnauthorizedError: If the session cannot be refreshed
        """
        sessions = self.components.sessions

        if not session_id:
            raise UnauthorizedError(
                "Refresh session not found",
                error_code="refresh_session_not_found",
            )

        refresh_session = await sessions.find(session_id)
        if not refresh_session:
            raise UnauthorizedError(
                "Refresh session not found",
                error_code="refresh_session_not_found",
            )

        if is_expired(refresh_session):
            await sessions.delete(session_id)
            raise UnauthorizedError(
                "Refresh session expired",
                error_code="refresh_session_expired",
            )

        user = await self.user_repo.get_by_id(refresh_session.user_id)
        if not user or not user.is_active:
            await sessions.delete(session_id)
            raise UnauthorizedError(
                "User not found",
                error_code="user_not_found",
            )

        refresh_token = create_refresh_token()
        expires_at = datetime.now(UTC) + self._refresh_lifetime
        if not await sessions.rotate(session_id, refresh_token, expires_at):
            # Deleted between lookup and rotation
            raise UnauthorizedError(
                "Refresh session not found",
                error_code="refresh_session_not_found",
            )

        access_token, access_expires_at = self._issue_access_token(user)
        return IssuedTokens(
            access_token=access_token,
            access_token_expires_at=access_expires_at,
            session_id=session_id,
            refresh_token=refresh_token,
            refresh_token_expires_at=expires_at,
            user=user,
        )

    async def logout(self, session_id: str | None) -> None:
        """Delete the refresh session of the cookie, if any."""
        if session_id:
            await self.components.sessions.delete(session_id)

    async def logout_all(self, user_id: UUID) -> int:
        """Delete every refresh session of a user.

        Returns:
            Number of sessions deleted
        """
        return await self.components.sessions.delete_all_for_user(user_id)

    async def establish_session(self, session_id: str, refresh_token: str) -> datetime:
        """Check a session id / refresh token pair for cookie issuance.

        Only the session's current refresh token is accepted; a value
        replaced by a later rotation no longer matches.

        Returns:
            Expiry of the session, for the cookie

        Raises:
            UnauthorizedError: If the pair is unknown, stale or expired
        """
        sessions = self.components.sessions

        refresh_session = await sessions.find(session_id)
        if not refresh_session or not sessions.token_matches(
            refresh_session, refresh_token
        ):
            logger.warning(
                "session_establish_failed",
                session=session_id[:8] + "...",
            )
            raise UnauthorizedError("Invalid session", error_code="invalid_session")

        if is_expired(refresh_session):
            await sessions.delete(session_id)
            raise UnauthorizedError("Session expired", error_code="session_expired")

        return refresh_session.expires_at


async def get_auth_service(components: Components, db: DBSession) -> AuthService:
    """Dependency that provides the authentication service."""
    return AuthService(components, db)


AuthSvc = Annotated[AuthService, Depends(get_auth_service)]
