"""Background job tasks.

Each task module defines async functions registered in the worker.
"""

from boardauth.core.jobs.tasks.cleanup import cleanup_expired_sessions


__all__ = [
    "cleanup_expired_sessions",
]
