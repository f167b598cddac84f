"""Shutdown-aware scheduling for long-running account loops.

Every timed wait in the bot (dwell time before scoring, retry delays,
boss ticks, backoff between rounds) goes through ``Scheduler.sleep`` so
that a termination signal interrupts the wait instead of letting it run
to completion. In-flight HTTP requests are not aborted; the next wait
raises ``ShutdownRequested`` and the loop unwinds from there.

Usage:
    scheduler = Scheduler()
    loop.add_signal_handler(signal.SIGTERM, scheduler.stop, "SIGTERM")

    try:
        await scheduler.sleep(110)
    except ShutdownRequested:
        return
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class ShutdownRequested(Exception):
    """Raised out of a scheduled delay once the process is stopping."""


class Scheduler:
    """Owns the process-wide stop event."""

    def __init__(self) -> None:
        self._stopped = asyncio.Event()
        self._reason: str | None = None

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    @property
    def reason(self) -> str | None:
        """Why the scheduler was stopped, if it was."""
        return self._reason

    def stop(self, reason: str = "stop requested") -> None:
        """Signal every pending and future sleep to raise ShutdownRequested."""
        if self._stopped.is_set():
            return
        logger.info("Shutdown requested: %s", reason)
        self._reason = reason
        self._stopped.set()

    async def sleep(self, seconds: float) -> None:
        """Wait ``seconds`` unless shutdown arrives first.

        Raises:
            ShutdownRequested: If the scheduler is (or becomes) stopped.
        """
        if self._stopped.is_set():
            raise ShutdownRequested(self._reason)
        if seconds > 0:
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=seconds)
            except TimeoutError:
                return
            raise ShutdownRequested(self._reason)

    async def wait(self) -> str | None:
        """Block until stopped; returns the stop reason."""
        await self._stopped.wait()
        return self._reason
