"""Process-wide wiring.

``BotContext`` owns everything accounts share: the HTTP client, the zone
blacklist, the best-planet cache and the scheduler. ``run_bot`` warms
the cache, starts one account loop per token and waits for shutdown.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from salien.bot.account import AccountLoop
from salien.bot.blacklist import ZoneBlacklist
from salien.bot.client import GameClient
from salien.bot.config import Settings
from salien.bot.errors import SalienError
from salien.bot.models import BestPlanet
from salien.bot.round import RoundStateMachine
from salien.bot.selector import PlanetSelector
from salien.lib.cache import TTLCache
from salien.lib.logs import account_label
from salien.lib.realtime import Scheduler, ShutdownRequested
from salien.lib.retry import RetryPolicy
from salien.lib.throttle import Throttle

logger = logging.getLogger(__name__)


class BotContext:
    """Shared state for all accounts in the process.

    Args:
        settings: Bot settings.
        client: Game client; built from settings when None.
        scheduler: Shutdown-aware scheduler; a new one when None.
        clock: Monotonic clock for the cache and heal timers.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: GameClient | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.scheduler = scheduler or Scheduler()
        self.blacklist = ZoneBlacklist()
        self.cache = TTLCache(ttl=settings.planet_cache_ttl_seconds, clock=clock)
        self.client = client or GameClient(
            settings.api_base,
            language=settings.language,
            timeout=settings.http_timeout_seconds,
            throttle=Throttle(
                settings.max_concurrent_requests,
                settings.min_request_interval_seconds,
            ),
        )
        self.selector = PlanetSelector(
            self.client,
            self.blacklist,
            cache=self.cache,
            scheduler=self.scheduler,
            retry_delay=settings.planet_retry_delay_seconds,
        )
        self._clock = clock

    def round_machine(self, token: str) -> RoundStateMachine:
        return RoundStateMachine(
            token,
            client=self.client,
            selector=self.selector,
            blacklist=self.blacklist,
            scheduler=self.scheduler,
            settings=self.settings,
            clock=self._clock,
        )

    def account(self, token: str) -> AccountLoop:
        return AccountLoop(
            self.round_machine(token),
            scheduler=self.scheduler,
            settings=self.settings,
        )

    async def warm_up(self) -> BestPlanet:
        """Fill the best-planet cache before any account starts.

        Raises:
            SalienError: If every startup attempt failed.
        """
        policy = RetryPolicy(
            max_attempts=self.settings.startup_attempts,
            delay=self.settings.startup_retry_delay_seconds,
            label="Getting planets info",
        )
        return await policy.call(
            self.selector.best_planet,
            retry_on=lambda exc: isinstance(exc, SalienError),
            sleep=self.scheduler.sleep,
        )


async def run_bot(context: BotContext, tokens: list[str]) -> str | None:
    """Run one account loop per token until the scheduler is stopped.

    Returns:
        The shutdown reason.

    Raises:
        SalienError: If the startup planet scan fails.
    """
    scheduler = context.scheduler
    try:
        await context.warm_up()
    except ShutdownRequested:
        return scheduler.reason

    tasks: list[asyncio.Task[None]] = []
    try:
        for index, token in enumerate(tokens):
            if index:
                await scheduler.sleep(context.settings.account_stagger_seconds)
            logger.info("Starting account %s", account_label(token))
            tasks.append(
                asyncio.create_task(
                    context.account(token).run(),
                    name=f"account-{account_label(token)}",
                )
            )
        await scheduler.wait()
    except ShutdownRequested:
        pass
    finally:
        scheduler.stop("bot exiting")
        await asyncio.gather(*tasks)
    return scheduler.reason
