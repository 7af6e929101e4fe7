"""Integration tests for the session cleanup job and worker settings."""

from datetime import UTC, datetime, timedelta

import pytest

from boardauth.core.auth.passwords import create_refresh_token
from boardauth.core.auth.sessions import RefreshSessionManager
from boardauth.core.jobs.tasks.cleanup import cleanup_expired_sessions
from boardauth.core.jobs.worker import WorkerSettings


pytestmark = pytest.mark.integration


async def test_cleanup_removes_only_expired_sessions(session_factory, user):
    """The cron job deletes expired sessions and reports the count."""
    manager = RefreshSessionManager(session_factory)
    now = datetime.now(UTC)
    expired = await manager.create(user.id, create_refresh_token(), now - timedelta(hours=1))
    live = await manager.create(user.id, create_refresh_token(), now + timedelta(days=7))

    result = await cleanup_expired_sessions({"db_session_factory": session_factory})

    assert result == {"sessions_deleted": 1}
    assert await manager.find(expired.session_id) is None
    assert await manager.find(live.session_id) is not None


async def test_cleanup_with_nothing_to_do(session_factory):
    """An empty sweep reports zero."""
    result = await cleanup_expired_sessions({"db_session_factory": session_factory})

    assert result == {"sessions_deleted": 0}


def test_worker_schedules_hourly_cleanup():
    """The worker runs the session sweep at minute 0 of every hour."""
    assert cleanup_expired_sessions in WorkerSettings.functions
    [job] = WorkerSettings.cron_jobs

    assert job.coroutine is cleanup_expired_sessions
    assert job.minute == 0
    assert job.hour is None
