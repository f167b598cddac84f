"""Account loop: plays rounds for one token until shutdown."""

import logging
import random

from salien.bot.config import Settings
from salien.bot.errors import SalienError
from salien.bot.round import RoundStateMachine
from salien.lib.realtime import Scheduler, ShutdownRequested

logger = logging.getLogger(__name__)


class AccountLoop:
    """Repeats rounds for one account, backing off after failures.

    A successful round is followed by a short pause (plus optional
    jitter), a failed one by the longer error backoff. Round failures
    never end the loop; only shutdown does.
    """

    def __init__(
        self,
        machine: RoundStateMachine,
        *,
        scheduler: Scheduler,
        settings: Settings,
        rng: random.Random | None = None,
    ) -> None:
        self.machine = machine
        self._scheduler = scheduler
        self._settings = settings
        self._rng = rng or random.Random()
        self.rounds_completed = 0
        self.rounds_failed = 0

    def _pause(self) -> float:
        jitter = self._settings.round_jitter_seconds
        extra = self._rng.uniform(0, jitter) if jitter > 0 else 0.0
        return self._settings.round_interval_seconds + extra

    async def run(self) -> None:
        log = self.machine.log
        backoff = self._settings.error_backoff_seconds
        while not self._scheduler.stopped:
            try:
                await self.machine.play_round()
                self.rounds_completed += 1
                wait = self._pause()
            except ShutdownRequested:
                break
            except SalienError as e:
                self.rounds_failed += 1
                log.error("[ERROR] %s - retry in %.0f seconds...", e, backoff)
                wait = backoff
            except Exception:
                self.rounds_failed += 1
                log.exception("Unexpected error - retry in %.0f seconds...", backoff)
                wait = backoff

            try:
                await self._scheduler.sleep(wait)
            except ShutdownRequested:
                break
        log.info("Account loop stopped after %d rounds", self.machine.round_number)
