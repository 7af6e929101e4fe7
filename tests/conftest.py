"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from boardauth.config import Settings
from boardauth.core.database import Base, create_session_factory
from boardauth.core.rate_limit import InMemoryBucketStore
from boardauth.core.wiring import AuthComponents, build_components
from boardauth.main import create_app

# Import all models to ensure they're registered with Base.metadata
from boardauth.modules.users.models import RefreshSession, User  # noqa: F401
from boardauth.modules.users.schemas import UserCreate
from boardauth.modules.users.services import UserService


TEST_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"
TEST_PASSWORD = "correct-horse-battery"


class FakeClock:
    """Manually advanced time source for rate limiter tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides: object) -> Settings:
    """Build isolated settings that ignore the developer's .env file."""
    values: dict[str, object] = {
        "secret_key": TEST_SECRET_KEY,
        "environment": "testing",
        "login_failure_delay_seconds": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def settings_factory():
    """Provide ``make_settings`` for tests that need overrides."""
    return make_settings


@pytest.fixture
def settings() -> Settings:
    """Provide test settings."""
    return make_settings()


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine with all tables.

    A file (rather than ``:memory:``) lets every session see committed
    data, because each operation of the refresh session manager opens
    its own connection.
    """
    engine = create_async_engine(sqlite_url(tmp_path / "test.db"), poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Provide a session factory bound to the test engine."""
    return create_session_factory(engine)


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for direct assertions."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def components(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> AuthComponents:
    """Wire components against the test database and an in-memory store."""
    return build_components(
        settings,
        session_factory=session_factory,
        bucket_store=InMemoryBucketStore(),
    )


@pytest.fixture
def app(components: AuthComponents):
    """Create test application instance."""
    return create_app(components=components)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing.

    HTTPS so that Secure cookies are sent back.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="https://test",
    ) as client:
        yield client


# ============================================================
# User Fixtures
# ============================================================


@pytest.fixture
async def user(session_factory: async_sessionmaker[AsyncSession]) -> User:
    """Create an active local user with ``TEST_PASSWORD``."""
    async with session_factory() as session:
        user = await UserService(session).create_user(
            UserCreate(
                username="alice",
                password=TEST_PASSWORD,
                email="alice@example.com",
                display_name="Alice",
            )
        )
        await session.commit()
    return user


@pytest.fixture
def auth_headers(components: AuthComponents, user: User) -> dict[str, str]:
    """Authorization headers with a valid access token for ``user``."""
    token = components.tokens.sign(str(user.id))
    return {"Authorization": f"Bearer {token}"}
