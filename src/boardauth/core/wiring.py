"""Explicit assembly of the authentication components.

``build_components`` is the only place where services are constructed.
The resulting bundle lives on ``app.state.components`` and is handed
to routes through dependencies.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from boardauth.config import Settings
from boardauth.core.auth.cookies import RefreshCookieManager
from boardauth.core.auth.sessions import RefreshSessionManager
from boardauth.core.auth.tokens import TokenService
from boardauth.core.database import create_engine, create_session_factory
from boardauth.core.rate_limit import (
    BucketStore,
    InMemoryBucketStore,
    RedisBucketStore,
    TokenBucketRateLimiter,
)


@dataclass
class AuthComponents:
    """Everything the HTTP and WebSocket layers need.

    Attributes:
        settings: Application settings the components were built from
        session_factory: Async session factory for the database
        tokens: Access token signer/verifier
        sessions: Refresh session manager
        cookies: Refresh cookie transport
        rate_limiter: Per-identity request limiter
        login_limiter: Per-username login attempt limiter
        engine: Engine owned by these components, if any
    """

    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    tokens: TokenService
    sessions: RefreshSessionManager
    cookies: RefreshCookieManager
    rate_limiter: TokenBucketRateLimiter
    login_limiter: TokenBucketRateLimiter
    engine: AsyncEngine | None = None

    async def dispose(self) -> None:
        """Release the database engine if these components created it."""
        if self.engine is not None:
            await self.engine.dispose()


def build_bucket_store(settings: Settings) -> BucketStore:
    """Select the bucket store configured by ``RATE_LIMIT_BACKEND``."""
    if settings.rate_limit_backend == "redis":
        return RedisBucketStore(str(settings.redis_url))
    return InMemoryBucketStore()


def build_components(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    bucket_store: BucketStore | None = None,
    clock: Callable[[], float] | None = None,
) -> AuthComponents:
    """Wire the authentication components from settings.

    Args:
        settings: Application settings
        session_factory: Existing session factory; an engine is created
            from ``DATABASE_URL`` when omitted
        bucket_store: Store shared by both limiters; chosen from
            settings when omitted
        clock: Time source for the limiters

    Returns:
        The assembled components
    """
    engine: AsyncEngine | None = None
    if session_factory is None:
        engine = create_engine(settings)
        session_factory = create_session_factory(engine)

    store = bucket_store if bucket_store is not None else build_bucket_store(settings)
    clock = clock or time.time

    return AuthComponents(
        settings=settings,
        session_factory=session_factory,
        tokens=TokenService.from_settings(settings),
        sessions=RefreshSessionManager(session_factory),
        cookies=RefreshCookieManager.from_settings(settings),
        rate_limiter=TokenBucketRateLimiter(
            store,
            capacity=settings.rate_limit_tokens,
            interval_seconds=settings.rate_limit_interval_seconds,
            max_idle_seconds=settings.rate_limit_bucket_max_idle_seconds,
            prefix="ratelimit",
            clock=clock,
        ),
        login_limiter=TokenBucketRateLimiter(
            store,
            capacity=settings.login_rate_limit_max,
            interval_seconds=settings.login_rate_limit_window_seconds,
            max_idle_seconds=max(
                settings.rate_limit_bucket_max_idle_seconds,
                settings.login_rate_limit_window_seconds,
            ),
            prefix="loginlimit",
            clock=clock,
        ),
        engine=engine,
    )
