"""Cleanup tasks for expired data.

Background jobs that remove expired refresh sessions from the
database.
"""

from typing import Any

import structlog

from boardauth.core.auth.sessions import RefreshSessionManager


log = structlog.get_logger()


async def cleanup_expired_sessions(ctx: dict[str, Any]) -> dict[str, int]:
    """Delete refresh sessions past their expiry.

    Scheduled hourly by the worker. Database errors propagate so ARQ
    records the job as failed and retries it.

    Args:
        ctx: Worker context containing database session factory

    Returns:
        Dict with the number of deleted sessions
    """
    manager = RefreshSessionManager(ctx["db_session_factory"])
    deleted = await manager.delete_expired()

    log.info("cleanup_expired_sessions_complete", sessions_deleted=deleted)

    return {"sessions_deleted": deleted}
