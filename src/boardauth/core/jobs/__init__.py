"""Background work.

In-process recurring tasks for housekeeping, plus an ARQ worker for
deployments that run one.
"""

from boardauth.core.jobs.scheduler import RecurringTask


__all__ = [
    "RecurringTask",
]
