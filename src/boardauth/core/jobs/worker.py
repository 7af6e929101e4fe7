"""ARQ worker configuration.

Defines the worker settings including registered jobs,
cron schedules, and startup/shutdown hooks.
"""

from typing import Any, ClassVar

import structlog
from arq import cron

from boardauth.config import settings
from boardauth.core.database import create_engine, create_session_factory
from boardauth.core.jobs.tasks.cleanup import cleanup_expired_sessions
from boardauth.core.jobs.utils import get_redis_settings


async def startup(ctx: dict[str, Any]) -> None:
    """Initialize resources for the worker.

    Args:
        ctx: Worker context dict (shared across all jobs)
    """
    log = structlog.get_logger()
    log.info("worker_startup", environment=settings.environment)

    engine = create_engine(settings)
    ctx["db_engine"] = engine
    ctx["db_session_factory"] = create_session_factory(engine)

    log.info("worker_startup_complete")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Cleanup resources when the worker stops.

    Args:
        ctx: Worker context dict
    """
    log = structlog.get_logger()
    log.info("worker_shutdown")

    engine = ctx.get("db_engine")
    if engine:
        await engine.dispose()
        log.info("database_engine_disposed")

    log.info("worker_shutdown_complete")


class WorkerSettings:
    """ARQ worker settings.

    Run the worker with:
        arq boardauth.core.jobs.worker.WorkerSettings
    """

    functions: ClassVar[list[Any]] = [
        cleanup_expired_sessions,
    ]

    cron_jobs: ClassVar[list[Any]] = [
        # Sweep expired refresh sessions at the top of every hour
        cron(cleanup_expired_sessions, minute=0),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = get_redis_settings()

    max_jobs = 10
    job_timeout = 300
    keep_result = 3600
    retry_jobs = True
    max_tries = 3
