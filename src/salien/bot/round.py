"""Per-account round decision procedure.

One round re-reads the player, decides what to do next and does it:

1. abandon a zone game that has run past the stuck threshold
2. look up the best planet (cached across accounts)
3. join it if the player is on no planet, else load the current planet
4. leave the current planet if it is over or no longer the best
5. resume an in-progress zone or boss game
6. otherwise pick a zone (live boss first, then highest difficulty)
7. join it, retrying a few times before blacklisting it
8. wait out the dwell time and submit the score

Nothing from a round survives into the next one except the shared
blacklist and best-planet cache, plus this account's heal timer and
round counter. Every failure is raised as a SalienError; the account
loop decides how long to back off.
"""

import logging
import time
from collections.abc import Callable

from salien.bot.blacklist import ZoneBlacklist
from salien.bot.client import GameClient
from salien.bot.config import Settings
from salien.bot.errors import (
    ConcurrentJoinDetected,
    NoZoneAvailable,
    RoundFailed,
    RoundFailure,
    SalienError,
    StaleSubmission,
    ZoneBlacklisted,
    is_transient,
)
from salien.bot.models import (
    BossDamageReport,
    Planet,
    Player,
    RoundAction,
    RoundResult,
    Zone,
    zone_score,
)
from salien.bot.selector import PlanetSelector
from salien.lib.logs import AccountLogger, account_label
from salien.lib.realtime import Scheduler
from salien.lib.retry import RetryPolicy

logger = logging.getLogger(__name__)


def choose_zone(planet: Planet, blacklist: ZoneBlacklist) -> Zone:
    """Next zone to play on ``planet``.

    A live boss zone wins outright; otherwise the hardest regular zone,
    the last one listed on a tie. Captured and blacklisted zones are
    never returned.

    Raises:
        NoZoneAvailable: If nothing on the planet can be joined.
    """
    chosen: Zone | None = None
    for zone in planet.zones:
        if zone.captured or blacklist.contains(planet.id, zone.position):
            continue
        if zone.boss_active:
            return zone
        if zone.is_boss:
            continue
        if chosen is None or zone.difficulty >= chosen.difficulty:
            chosen = zone
    if chosen is None:
        raise NoZoneAvailable(f"no available zone on planet {planet.name}")
    return chosen


class RoundStateMachine:
    """Plays rounds for one account.

    Args:
        token: The account's game token.
        client: Game API client, shared.
        selector: Best-planet selector, shared.
        blacklist: Zone blacklist, shared.
        scheduler: Shutdown-aware sleep, shared.
        settings: Timing and tuning knobs.
        clock: Monotonic time source for the heal cooldown.
    """

    def __init__(
        self,
        token: str,
        *,
        client: GameClient,
        selector: PlanetSelector,
        blacklist: ZoneBlacklist,
        scheduler: Scheduler,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._token = token
        self._client = client
        self._selector = selector
        self._blacklist = blacklist
        self._scheduler = scheduler
        self._settings = settings
        self._clock = clock
        self._last_heal_at = clock()
        self.round_number = 0

        label = account_label(token)
        self.log = AccountLogger(logger, label)
        self._join_policy = RetryPolicy(
            max_attempts=settings.join_attempts,
            delay=settings.join_retry_delay_seconds,
            label=f"[{label}] JoinZone",
        )
        self._boss_policy = RetryPolicy(
            max_attempts=None,
            delay=settings.boss_tick_seconds,
            label=f"[{label}] ReportBossDamage",
        )

    # ------------------------------------------------------------------
    # Round
    # ------------------------------------------------------------------

    async def play_round(self) -> RoundResult:
        """Run one full round.

        Raises:
            SalienError: Any reason the round could not complete.
            ShutdownRequested: If the process is stopping.
        """
        self.round_number += 1
        self.log.info("=== Round %d ===", self.round_number)

        player = await self._client.fetch_player(self._token)
        if player.time_in_zone > self._settings.stuck_threshold_seconds:
            self.log.info(
                "Stuck in a game for %d seconds, trying to reset...",
                player.time_in_zone,
            )
            await self._client.leave_game(
                player.active_zone_game or player.active_boss_game, self._token
            )
            raise RoundFailed(
                RoundFailure.TIMEOUT, f"{player.time_in_zone}s in zone"
            )

        best = await self._selector.best_planet()

        if not player.active_planet:
            planet = await self._client.fetch_planet(best.planet_id)
            self.log.info("Not in a planet, joining planet %s...", planet.name)
            await self._client.join_planet(planet.id, self._token)
        else:
            planet = await self._client.fetch_planet(player.active_planet)

        if not planet.joinable:
            self.log.info(
                "Planet %s is inactive or already captured, leaving...", planet.name
            )
            await self._client.leave_game(planet.id, self._token)
            raise RoundFailed(RoundFailure.PLANET_CHANGED, f"left {planet.name}")

        if best.planet_id != planet.id:
            self.log.info(
                "A better planet with difficulty %d is available, leaving %s...",
                best.difficulty,
                planet.name,
            )
            await self._leave_current_game(player)
            await self._client.leave_game(planet.id, self._token)
            raise RoundFailed(
                RoundFailure.PLANET_CHANGED, f"left {planet.name} for {best.name}"
            )

        self.log.info(
            "Planet:%s|Progress:%.2f%%|Level:%d|Exp:%s/%s",
            planet.name,
            planet.progress * 100,
            player.level,
            player.score,
            player.next_level_score,
        )

        if player.in_game:
            result = await self._recover(player, planet)
        else:
            result = await self._play_new_zone(player, planet)

        self.log.info(
            "=== Round %d Complete (%s -> %s) ===",
            self.round_number,
            result.old_score,
            result.new_score or result.old_score,
        )
        return result

    async def _leave_current_game(self, player: Player) -> None:
        game_id = player.active_zone_game or player.active_boss_game
        if not game_id:
            return
        try:
            await self._client.leave_game(game_id, self._token)
        except SalienError as e:
            self.log.warning("Failed leaving game %s: %s", game_id, e)

    def _result(
        self, action: RoundAction, planet: Planet, zone: Zone, old: str, new: str = ""
    ) -> RoundResult:
        return RoundResult(
            round_number=self.round_number,
            action=action,
            planet_id=planet.id,
            zone_position=zone.position,
            old_score=old,
            new_score=new,
        )

    # ------------------------------------------------------------------
    # Recovery of a game already in progress
    # ------------------------------------------------------------------

    async def _recover(self, player: Player, planet: Planet) -> RoundResult:
        self.log.info(
            "Already in game zone %s for %d seconds, trying to recover...",
            player.active_zone_position,
            player.time_in_zone,
        )
        position = player.zone_position
        zone = planet.zone_at(position) if position is not None else None

        if player.active_boss_game:
            if zone is None or not zone.has_active_boss:
                await self._client.leave_game(player.active_boss_game, self._token)
                raise RoundFailed(RoundFailure.RESET, "boss encounter is gone")
            await self.fight_boss(zone)
            return self._result(RoundAction.BOSS, planet, zone, player.score)

        if zone is None or zone.is_boss:
            await self._client.leave_game(player.active_zone_game, self._token)
            raise RoundFailed(
                RoundFailure.RESET,
                f"zone {player.active_zone_position} cannot be resumed",
            )

        wait = self._settings.min_dwell_seconds - player.time_in_zone
        if wait > 0:
            self._log_pending_score(zone, wait)
            await self._scheduler.sleep(wait)
        new_score = await self.submit_score(zone)
        return self._result(
            RoundAction.RECOVERED, planet, zone, player.score, new_score
        )

    # ------------------------------------------------------------------
    # Fresh zone
    # ------------------------------------------------------------------

    async def _play_new_zone(self, player: Player, planet: Planet) -> RoundResult:
        try:
            zone = choose_zone(planet, self._blacklist)
        except NoZoneAvailable as e:
            self.log.info("%s, leaving planet", e)
            await self._client.leave_game(planet.id, self._token)
            raise RoundFailed(RoundFailure.RESET, str(e)) from e

        self.log.info(
            "Joining Zone:%d(%d %.2f%%)...",
            zone.position,
            zone.difficulty,
            zone.capture_progress * 100,
        )
        if zone.has_active_boss:
            await self.fight_boss(zone)
            return self._result(RoundAction.BOSS, planet, zone, player.score)

        await self.join_zone(planet, zone)
        wait = self._settings.min_dwell_seconds
        self.log.info(
            "...Joined! wait %ds to submit score(%d).", wait, zone_score(zone.difficulty)
        )
        await self._scheduler.sleep(wait)
        new_score = await self.submit_score(zone)
        return self._result(RoundAction.SCORED, planet, zone, player.score, new_score)

    async def join_zone(self, planet: Planet, zone: Zone) -> None:
        """Join a regular zone, blacklisting it if it keeps refusing.

        Between attempts the player is re-read; if it already sits in a
        zone game some other session got there first.

        Raises:
            ConcurrentJoinDetected: Player is in a zone game mid-retry.
            ZoneBlacklisted: Every attempt failed.
        """
        failures = 0

        async def attempt() -> None:
            nonlocal failures
            try:
                await self._client.join_zone(zone.position, self._token)
            except SalienError:
                failures += 1
                raise

        async def check_concurrent_join() -> None:
            player = await self._client.fetch_player(self._token)
            if player.active_zone_game:
                raise ConcurrentJoinDetected(
                    f"already in zone {player.active_zone_position} "
                    f"while trying to join zone {zone.position}"
                )

        try:
            await self._join_policy.call(
                attempt,
                retry_on=is_transient,
                between=check_concurrent_join,
                sleep=self._scheduler.sleep,
            )
        except SalienError as e:
            if failures < self._settings.join_attempts or not is_transient(e):
                raise
            self._blacklist.add(planet.id, zone.position)
            raise ZoneBlacklisted(planet.id, zone.position) from e

    async def submit_score(self, zone: Zone) -> str:
        """Report the zone score; returns the new total.

        Raises:
            StaleSubmission: The player has no active zone game any more.
        """
        player = await self._client.fetch_player(self._token)
        if not player.active_zone_game:
            raise StaleSubmission(
                "no active game found, possible planet change in progress"
            )
        return await self._client.report_score(
            zone_score(zone.difficulty), self._token
        )

    def _log_pending_score(self, zone: Zone, wait: int) -> None:
        self.log.info(
            "Submitting score(%d) for zone %d(%d %.2f%%) in %d seconds...",
            zone_score(zone.difficulty),
            zone.position,
            zone.difficulty,
            zone.capture_progress * 100,
            wait,
        )

    # ------------------------------------------------------------------
    # Boss encounter
    # ------------------------------------------------------------------

    async def fight_boss(self, zone: Zone) -> None:
        """Join (if needed) and fight a boss until the game is over.

        Damage reports go out every boss tick. The first tick, and every
        tick after the lobby reported it is still waiting for players,
        only primes the encounter with zero damage. Failed reports are
        retried on the same cadence until the game ends.
        """
        self.log.info("Joining a boss zone...")
        if not zone.has_active_boss:
            raise NoZoneAvailable(f"zone {zone.position} has no active boss")

        player = await self._client.fetch_player(self._token)
        if not player.active_boss_game:
            if player.active_zone_game:
                self.log.info("Quitting current game for a boss zone fight...")
                await self._client.leave_game(player.active_zone_game, self._token)
            self.log.info("Joining zone %d for a boss fight...", zone.position)
            await self._client.join_boss_zone(zone.position, self._token)

        started = False

        async def tick() -> BossDamageReport:
            nonlocal started
            damage, heal = 0, False
            if started:
                damage = self._settings.boss_damage_per_tick
                heal = self.heal_ready()
            started = True
            report = await self._client.report_boss_damage(damage, heal, self._token)
            started = not report.waiting_for_players
            self._log_boss_report(report)
            return report

        await self._boss_policy.call(
            tick,
            retry_on=is_transient,
            until=lambda report: report.game_over,
            sleep=self._scheduler.sleep,
        )

        player = await self._client.fetch_player(self._token)
        if player.active_boss_game:
            self.log.info("Boss Fight Completed, exiting...")
            await self._client.leave_game(player.active_boss_game, self._token)

    def heal_ready(self) -> bool:
        """True at most once per heal cooldown; restarts the cooldown."""
        now = self._clock()
        if now - self._last_heal_at > self._settings.heal_cooldown_seconds:
            self._last_heal_at = now
            return True
        return False

    def _log_boss_report(self, report: BossDamageReport) -> None:
        if report.game_over:
            self.log.info("Boss is now dead.")
        elif report.boss_status is None:
            self.log.info("Waiting for boss fight players...")
        else:
            self.log.info(
                "Boss fight in progress - HP %d/%d",
                report.boss_status.boss_hp,
                report.boss_status.boss_max_hp,
            )
