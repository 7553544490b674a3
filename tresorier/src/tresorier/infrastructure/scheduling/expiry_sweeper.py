"""
Background sweeper for expired verification attempts.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import (
    verification_attempts_swept_total,
)

logger = get_logger(__name__)


class ExpirySweeper:
    """
    Runs a purge job every interval until stopped.

    The job returns the number of attempts it removed. A failing run is
    logged and the loop keeps going.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[int]],
        interval_seconds: float = 60.0,
    ):
        self.job = job
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="expiry-sweeper")
        logger.info(f"Expiry sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry sweeper stopped")

    async def run_once(self) -> int:
        """Run the purge job one time."""
        removed = await self.job()
        if removed:
            verification_attempts_swept_total.inc(removed)
            logger.info(f"Purged {removed} expired verification attempts")
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception:
                logger.exception("Expiry sweep failed")
