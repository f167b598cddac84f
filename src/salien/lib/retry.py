"""Retry policy for remote game calls using tenacity.

A single ``RetryPolicy`` describes how a call site retries: how many
attempts (or unbounded), the fixed delay between attempts, which failures
are worth retrying, and optionally a result predicate that keeps polling
until it is satisfied.

Examples:
    Retry a fetch forever, two seconds apart::

        >>> policy = RetryPolicy(max_attempts=None, delay=2)
        >>> planet = await policy.call(
        ...     client.fetch_planet, planet_id,
        ...     retry_on=lambda exc: isinstance(exc, ConnectivityError),
        ... )

    Poll until a response says the game is over::

        >>> report = await policy.call(
        ...     tick, until=lambda report: report.game_over,
        ... )
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
    stop_never,
    wait_fixed,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]
"""Awaitable delay, e.g. ``asyncio.sleep`` or ``Scheduler.sleep``."""


def _retry_everything(_exc: BaseException) -> bool:
    return True


class RetryPolicy(BaseModel):
    """Fixed-delay retry policy.

    Args:
        max_attempts: Total attempts including the first. None retries
            until the call succeeds (or the sleep raises).
        delay: Seconds to wait between attempts.
        label: Name used in log lines.
    """

    max_attempts: int | None = Field(default=3, ge=1)
    delay: float = Field(default=0.0, ge=0.0)
    label: str = "call"

    async def call(
        self,
        func: Callable[..., Awaitable[T]],
        *args: object,
        retry_on: Callable[[BaseException], bool] = _retry_everything,
        until: Callable[[T], bool] | None = None,
        between: Callable[[], Awaitable[None]] | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> T:
        """Run ``func(*args)`` under this policy.

        Args:
            func: Coroutine function making one attempt.
            retry_on: Classifies a failure as retryable. Failures it
                rejects propagate immediately.
            until: When given, a successful result that does not satisfy
                it is treated as another attempt.
            between: Awaited after each delay, before the next attempt.
                Exceptions it raises abort the retry loop.
            sleep: Delay implementation. Exceptions it raises abort the
                retry loop as well.

        Returns:
            The first accepted result.

        Raises:
            The last failure once attempts are exhausted.
        """
        condition = retry_if_exception(retry_on)
        if until is not None:
            condition = condition | retry_if_result(lambda result: not until(result))

        async def _sleep(seconds: float) -> None:
            await sleep(seconds)
            if between is not None:
                await between()

        retrying = AsyncRetrying(
            stop=(
                stop_never
                if self.max_attempts is None
                else stop_after_attempt(self.max_attempts)
            ),
            wait=wait_fixed(self.delay),
            retry=condition,
            sleep=_sleep,
            before_sleep=self._log_attempt,
            retry_error_callback=_last_outcome,
            reraise=True,
        )
        return await retrying(func, *args)

    def _log_attempt(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return
        logger.warning(
            "%s failed (attempt %d): %s - retry in %.0fs",
            self.label,
            retry_state.attempt_number,
            outcome.exception(),
            self.delay,
        )


def _last_outcome(retry_state: RetryCallState) -> object:
    """Re-raise the last failure, or return the last unaccepted result."""
    outcome = retry_state.outcome
    assert outcome is not None
    return outcome.result()
