"""Tests for boardauth CLI commands."""

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from typer.testing import CliRunner

from boardauth import __version__, cli
from boardauth.cli import app
from boardauth.core.auth.passwords import create_refresh_token, verify_password
from boardauth.core.auth.sessions import RefreshSessionManager
from boardauth.core.database import create_session_factory
from boardauth.modules.users.models import User


runner = CliRunner()


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Point every CLI command at a SQLite file in ``tmp_path``."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setattr(
        cli,
        "create_engine",
        lambda settings: create_async_engine(url, poolclass=NullPool),
    )
    return url


def run_query(url: str, work):
    """Run an async callable against a session factory for the database."""

    async def runner_():
        engine = create_async_engine(url, poolclass=NullPool)
        try:
            return await work(create_session_factory(engine))
        finally:
            await engine.dispose()

    return asyncio.run(runner_())


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_init_db_is_repeatable(database_url: str) -> None:
    """init-db can run against an existing schema."""
    first = runner.invoke(app, ["init-db"])
    second = runner.invoke(app, ["init-db"])

    assert first.exit_code == 0, first.stdout
    assert second.exit_code == 0, second.stdout


class TestCreateUser:
    """Tests for boardauth create-user."""

    def test_creates_user_with_hashed_password(self, database_url: str) -> None:
        runner.invoke(app, ["init-db"])

        result = runner.invoke(
            app,
            ["create-user", "-u", "alice", "-p", "correct-horse-battery", "--email", "a@b.c"],
        )

        assert result.exit_code == 0, result.stdout
        assert "alice" in result.stdout

        async def load(session_factory):
            async with session_factory() as db:
                return await db.scalar(select(User).where(User.username == "alice"))

        user = run_query(database_url, load)
        assert user.email == "a@b.c"
        assert user.role == "user"
        assert verify_password("correct-horse-battery", user.password_hash)

    def test_prompts_for_password(self, database_url: str) -> None:
        """The password is read from a confirmed prompt when not given."""
        runner.invoke(app, ["init-db"])

        result = runner.invoke(
            app,
            ["create-user", "-u", "bob"],
            input="correct-horse-battery\ncorrect-horse-battery\n",
        )

        assert result.exit_code == 0, result.stdout

    def test_duplicate_username(self, database_url: str) -> None:
        runner.invoke(app, ["init-db"])
        runner.invoke(app, ["create-user", "-u", "alice", "-p", "correct-horse-battery"])

        result = runner.invoke(
            app, ["create-user", "-u", "alice", "-p", "another-password"]
        )

        assert result.exit_code == 1
        assert "already taken" in result.stdout

    def test_short_password_is_rejected(self, database_url: str) -> None:
        result = runner.invoke(app, ["create-user", "-u", "alice", "-p", "short"])

        assert result.exit_code == 2
        assert "password" in result.stdout


def test_sweep_sessions(database_url: str) -> None:
    """sweep-sessions deletes expired refresh sessions only."""
    runner.invoke(app, ["init-db"])
    runner.invoke(app, ["create-user", "-u", "alice", "-p", "correct-horse-battery"])

    async def seed(session_factory):
        async with session_factory() as db:
            user = await db.scalar(select(User).where(User.username == "alice"))
        manager = RefreshSessionManager(session_factory)
        now = datetime.now(UTC)
        await manager.create(user.id, create_refresh_token(), now - timedelta(hours=1))
        await manager.create(user.id, create_refresh_token(), now - timedelta(hours=2))
        await manager.create(user.id, create_refresh_token(), now + timedelta(days=1))

    run_query(database_url, seed)

    result = runner.invoke(app, ["sweep-sessions"])

    assert result.exit_code == 0, result.stdout
    assert "Deleted 2 expired" in result.stdout
