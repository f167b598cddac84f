"""Best-planet selection.

A scan fetches every active planet, rates each one by the best zone an
account could still join there, and keeps the winner in a TTL cache so
that all accounts share one scan every few minutes.

Ranking rules:
- inactive or captured planets rate 0
- otherwise the highest difficulty among uncaptured, non-blacklisted
  regular zones; a live boss zone rates BOSS_DIFFICULTY_RANK
- higher rating wins; at equal rating the less-progressed planet wins,
  except at rating 1 where the more-progressed planet wins so nearly
  finished easy planets get closed out
"""

import logging

from salien.bot.blacklist import ZoneBlacklist
from salien.bot.client import GameClient
from salien.bot.errors import NoPlanetAvailable, is_transient
from salien.bot.models import BOSS_DIFFICULTY_RANK, BestPlanet, Planet, PlanetRank, Zone
from salien.lib.cache import TTLCache
from salien.lib.realtime import Scheduler
from salien.lib.retry import RetryPolicy

logger = logging.getLogger(__name__)

BEST_PLANET_KEY = "best_planet"


def zone_rank(zone: Zone) -> int:
    """Rating of a single joinable zone, 0 if it cannot be played."""
    if zone.captured:
        return 0
    if zone.boss_active:
        return BOSS_DIFFICULTY_RANK
    if zone.is_boss:
        return 0
    return zone.difficulty


def best_available_difficulty(planet: Planet, blacklist: ZoneBlacklist) -> int:
    if not planet.joinable:
        return 0
    return max(
        (
            zone_rank(zone)
            for zone in planet.zones
            if not blacklist.contains(planet.id, zone.position)
        ),
        default=0,
    )


def _outranks(candidate: PlanetRank, best: PlanetRank) -> bool:
    if candidate.difficulty != best.difficulty:
        return candidate.difficulty > best.difficulty
    if candidate.difficulty == 1:
        return candidate.progress > best.progress
    return candidate.progress < best.progress


def pick_best(ranks: list[PlanetRank]) -> PlanetRank | None:
    """Winner of a scan, or None if no planet has a joinable zone.

    Deterministic: on a full tie the earlier planet is kept.
    """
    best: PlanetRank | None = None
    for rank in ranks:
        if rank.difficulty <= 0:
            continue
        if best is None or _outranks(rank, best):
            best = rank
    return best


class PlanetSelector:
    """Computes and caches the best planet to occupy.

    Args:
        client: Game API client.
        blacklist: Shared zone blacklist.
        cache: Shared cache; the scan result lives under BEST_PLANET_KEY.
        scheduler: Provides the shutdown-aware sleep for retries.
        retry_delay: Seconds between failed planet-detail fetches. Those
            are retried without limit; a partial scan would skew the
            ranking.
    """

    def __init__(
        self,
        client: GameClient,
        blacklist: ZoneBlacklist,
        *,
        cache: TTLCache,
        scheduler: Scheduler,
        retry_delay: float = 2.0,
    ) -> None:
        self._client = client
        self._blacklist = blacklist
        self._cache = cache
        self._scheduler = scheduler
        self._detail_policy = RetryPolicy(
            max_attempts=None, delay=retry_delay, label="GetPlanet"
        )

    async def best_planet(self) -> BestPlanet:
        """Cached best planet; rescans once the cache TTL has passed.

        Raises:
            NoPlanetAvailable: If no active planet has a joinable zone.
            ConnectivityError: If the planet list cannot be fetched.
        """
        return await self._cache.get_or_refresh(BEST_PLANET_KEY, self._scan_best)

    async def fetch_planet(self, planet_id: str) -> Planet:
        """Planet detail, retried until it arrives."""
        return await self._detail_policy.call(
            self._client.fetch_planet,
            planet_id,
            retry_on=is_transient,
            sleep=self._scheduler.sleep,
        )

    async def rate(self, planet: Planet) -> int:
        """Best available difficulty of a planet from the planet list."""
        if not planet.joinable:
            return 0
        detail = await self.fetch_planet(planet.id)
        return best_available_difficulty(detail, self._blacklist)

    async def scan(self) -> list[PlanetRank]:
        """Rate every active planet. Uncached."""
        planets = await self._client.fetch_active_planets()
        ranks: list[PlanetRank] = []
        for planet in planets:
            ranks.append(
                PlanetRank(
                    planet_id=planet.id,
                    name=planet.name,
                    difficulty=await self.rate(planet),
                    progress=planet.progress,
                )
            )
        return ranks

    async def _scan_best(self) -> BestPlanet:
        ranks = await self.scan()
        logger.info("Planets:")
        for rank in ranks:
            logger.info(
                "  %s (%d) - %.2f%%", rank.name, rank.difficulty, rank.progress * 100
            )

        best = pick_best(ranks)
        if best is None:
            raise NoPlanetAvailable("no active planet has a joinable zone")
        logger.info(
            "  (Best Planet) %s (%d) - %.2f%%",
            best.name,
            best.difficulty,
            best.progress * 100,
        )
        return BestPlanet(
            planet_id=best.planet_id,
            name=best.name,
            difficulty=best.difficulty,
            progress=best.progress,
        )
