"""Tests for planet ranking and the best-planet cache."""

import asyncio

import pytest

from salien.bot.blacklist import ZoneBlacklist
from salien.bot.errors import ConnectivityError, GameRejected, NoPlanetAvailable
from salien.bot.models import PlanetRank
from salien.bot.selector import PlanetSelector, best_available_difficulty, pick_best
from salien.lib.cache import TTLCache
from tests.fakes import FakeGameClient, RecordingScheduler, make_planet, make_zone


def rank(planet_id: str, difficulty: int, progress: float) -> PlanetRank:
    return PlanetRank(
        planet_id=planet_id, name=planet_id, difficulty=difficulty, progress=progress
    )


class TestBestAvailableDifficulty:
    """Tests for per-planet rating."""

    @pytest.mark.parametrize(
        ("active", "captured"), [(False, False), (True, True), (False, True)]
    )
    def test_inactive_or_captured_is_zero(
        self, blacklist: ZoneBlacklist, active: bool, captured: bool
    ) -> None:
        planet = make_planet(
            "A", [make_zone(0, 3), make_zone(1, 4, type=4, boss_active=True)],
            active=active, captured=captured,
        )
        assert best_available_difficulty(planet, blacklist) == 0

    def test_highest_uncaptured_zone(self, blacklist: ZoneBlacklist) -> None:
        planet = make_planet(
            "A", [make_zone(0, 1), make_zone(1, 3, captured=True), make_zone(2, 2)]
        )
        assert best_available_difficulty(planet, blacklist) == 2

    def test_active_boss_outranks_everything(self, blacklist: ZoneBlacklist) -> None:
        planet = make_planet(
            "A", [make_zone(0, 3), make_zone(1, 4, type=4, boss_active=True)]
        )
        assert best_available_difficulty(planet, blacklist) == 9

    def test_idle_boss_zone_is_ignored(self, blacklist: ZoneBlacklist) -> None:
        planet = make_planet("A", [make_zone(0, 1), make_zone(1, 4, type=4)])
        assert best_available_difficulty(planet, blacklist) == 1

    def test_blacklisted_zones_are_ignored(self, blacklist: ZoneBlacklist) -> None:
        planet = make_planet("A", [make_zone(0, 1), make_zone(1, 3)])
        blacklist.add("A", 1)
        assert best_available_difficulty(planet, blacklist) == 1
        blacklist.add("A", 0)
        assert best_available_difficulty(planet, blacklist) == 0


class TestPickBest:
    """Tests for cross-planet ranking."""

    def test_higher_difficulty_wins(self) -> None:
        best = pick_best([rank("A", 2, 0.1), rank("B", 3, 0.9)])
        assert best is not None and best.planet_id == "B"

    def test_equal_difficulty_prefers_less_progress(self) -> None:
        best = pick_best([rank("A", 2, 0.9), rank("B", 2, 0.3)])
        assert best is not None and best.planet_id == "B"

    def test_difficulty_one_prefers_more_progress(self) -> None:
        best = pick_best([rank("A", 1, 0.9), rank("B", 1, 0.1)])
        assert best is not None and best.planet_id == "A"

    def test_full_tie_keeps_first(self) -> None:
        best = pick_best([rank("A", 3, 0.5), rank("B", 3, 0.5)])
        assert best is not None and best.planet_id == "A"

    def test_order_independent(self) -> None:
        ranks = [rank("A", 2, 0.9), rank("B", 2, 0.3), rank("C", 1, 0.99)]
        first = pick_best(ranks)
        second = pick_best(list(reversed(ranks)))
        assert first == second

    def test_nothing_joinable(self) -> None:
        assert pick_best([rank("A", 0, 0.1), rank("B", 0, 0.5)]) is None
        assert pick_best([]) is None


class TestPlanetSelector:
    """Tests for scanning, retries and caching."""

    @pytest.fixture
    def client(self) -> FakeGameClient:
        return FakeGameClient(
            [
                make_planet("A", [make_zone(0, 2)], progress=0.9),
                make_planet("B", [make_zone(0, 2)], progress=0.3),
                make_planet("C", [make_zone(0, 3)], captured=True),
            ]
        )

    @pytest.fixture
    def now(self) -> list[float]:
        return [0.0]

    @pytest.fixture
    def selector(
        self,
        client: FakeGameClient,
        blacklist: ZoneBlacklist,
        scheduler: RecordingScheduler,
        now: list[float],
    ) -> PlanetSelector:
        return PlanetSelector(
            client,  # type: ignore[arg-type]
            blacklist,
            cache=TTLCache(ttl=300.0, clock=lambda: now[0]),
            scheduler=scheduler,
        )

    @pytest.mark.asyncio
    async def test_best_planet(
        self, selector: PlanetSelector, client: FakeGameClient
    ) -> None:
        best = await selector.best_planet()

        assert best.planet_id == "B"
        assert best.difficulty == 2
        assert ("GetPlanet", "C") not in client.calls

    @pytest.mark.asyncio
    async def test_cached_within_ttl(
        self, selector: PlanetSelector, client: FakeGameClient, now: list[float]
    ) -> None:
        first = await selector.best_planet()
        now[0] += 299
        second = await selector.best_planet()

        assert first.planet_id == second.planet_id
        assert client.names().count("GetPlanets") == 1

    @pytest.mark.asyncio
    async def test_one_refresh_after_expiry_under_concurrency(
        self, selector: PlanetSelector, client: FakeGameClient, now: list[float]
    ) -> None:
        await selector.best_planet()
        now[0] += 301

        results = await asyncio.gather(*[selector.best_planet() for _ in range(8)])

        assert {r.planet_id for r in results} == {"B"}
        assert client.names().count("GetPlanets") == 2

    @pytest.mark.asyncio
    async def test_detail_fetch_retried_until_success(
        self,
        selector: PlanetSelector,
        client: FakeGameClient,
        scheduler: RecordingScheduler,
    ) -> None:
        client.planet_errors["A"] = [
            ConnectivityError("reset"),
            GameRejected("busy"),
            ConnectivityError("reset"),
        ]

        best = await selector.best_planet()

        assert best.planet_id == "B"
        assert client.calls.count(("GetPlanet", "A")) == 4
        assert scheduler.sleeps == [2.0, 2.0, 2.0]

    @pytest.mark.asyncio
    async def test_no_planet_available(
        self, selector: PlanetSelector, blacklist: ZoneBlacklist
    ) -> None:
        blacklist.add("A", 0)
        blacklist.add("B", 0)

        with pytest.raises(NoPlanetAvailable):
            await selector.best_planet()

    @pytest.mark.asyncio
    async def test_scan_lists_every_planet(self, selector: PlanetSelector) -> None:
        ranks = await selector.scan()

        assert [(r.planet_id, r.difficulty) for r in ranks] == [
            ("A", 2),
            ("B", 2),
            ("C", 0),
        ]
