"""In-process recurring tasks.

Used for periodic housekeeping that must run even without an ARQ
worker, such as sweeping idle rate limit buckets.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog


logger = structlog.get_logger()


class RecurringTask:
    """Run an async callable every ``interval_seconds`` until stopped.

    A failing run is logged and the schedule continues.

    Example:
        task = RecurringTask("bucket_sweep", 300, limiter.cleanup)
        task.start()
        ...
        await task.stop()
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        func: Callable[[], Awaitable[Any]],
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.interval_seconds = interval_seconds
        self.func = func
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """Run the callable once.

        Returns:
            True if the run succeeded
        """
        try:
            await self.func()
        except Exception as exc:
            logger.exception(
                "recurring_task_failed",
                task=self.name,
                error_type=type(exc).__name__,
            )
            return False
        return True

    async def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                await self.run_once()

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info(
            "recurring_task_started",
            task=self.name,
            interval_seconds=self.interval_seconds,
        )

    async def stop(self) -> None:
        """Stop the loop and wait for an in-flight run to finish."""
        if self._task is None:
            return
        self._stop.set()
        await self._task
        self._task = None
        logger.info("recurring_task_stopped", task=self.name)
