"""HTTP client for the territory-control minigame service.

Each method issues exactly one request and decodes the JSON envelope
``{"response": {...}}`` into a typed model. There are no retries here;
call sites wrap these methods in a ``RetryPolicy`` when they need one.

Failure mapping:
- transport errors, non-JSON bodies, unexpected shapes -> ConnectivityError
- missing/null ``response``, or an operation-specific empty field
  (``zone_info``, ``new_score``, ...) -> GameRejected

HTTP status codes are deliberately ignored: the service signals failure
through the envelope, not the status line.
"""

import logging
from types import TracebackType
from typing import Any, Self, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from salien.bot.errors import ConnectivityError, GameRejected
from salien.bot.models import BossDamageReport, Planet, Player
from salien.lib.metrics import tracked
from salien.lib.throttle import Throttle

M = TypeVar("M", bound=BaseModel)

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"
MINIGAME_SERVICE = "ITerritoryControlMinigameService"
LEAVE_SERVICE = "IMiniGameService"


class _Planets(BaseModel):
    planets: list[Planet] = []


class GameClient:
    """Async client for the game API.

    Args:
        api_base: Scheme and host of the service.
        language: Language for planet names.
        timeout: Seconds for connect, read and write.
        throttle: Shared request throttle; unthrottled when None.
        http: Pre-built httpx client (tests pass one with a MockTransport).
            The client only closes clients it created itself.
    """

    def __init__(
        self,
        api_base: str,
        *,
        language: str = "english",
        timeout: float = 10.0,
        throttle: Throttle | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._base = api_base.rstrip("/")
        self._language = language
        self._throttle = throttle
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _url(self, method: str, service: str = MINIGAME_SERVICE) -> str:
        return f"{self._base}/{service}/{method}/v0001/"

    async def _send(
        self, verb: str, url: str, params: dict[str, str | int]
    ) -> httpx.Response:
        headers = {"Content-Type": CONTENT_TYPE} if verb == "POST" else None
        if self._throttle is None:
            return await self._http.request(verb, url, params=params, headers=headers)
        async with self._throttle:
            return await self._http.request(verb, url, params=params, headers=headers)

    async def _call(
        self,
        verb: str,
        method: str,
        params: dict[str, str | int],
        *,
        service: str = MINIGAME_SERVICE,
    ) -> dict[str, Any]:
        """Send one request and return the ``response`` payload."""
        try:
            res = await self._send(verb, self._url(method, service), params)
        except httpx.HTTPError as e:
            raise ConnectivityError(f"{method}: {e!r}") from e

        try:
            body = res.json()
        except ValueError as e:
            raise ConnectivityError(
                f"{method}: invalid response (HTTP {res.status_code})"
            ) from e

        if not isinstance(body, dict):
            raise ConnectivityError(f"{method}: unexpected body {type(body).__name__}")
        payload = body.get("response")
        if payload is None:
            raise GameRejected(f"{method} failed")
        if not isinstance(payload, dict):
            raise ConnectivityError(f"{method}: unexpected response payload")
        return payload

    @staticmethod
    def _decode(model: type[M], payload: dict[str, Any], method: str) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise ConnectivityError(f"{method}: {e.error_count()} invalid fields") from e

    # ------------------------------------------------------------------
    # Planets
    # ------------------------------------------------------------------

    @tracked("GetPlanets")
    async def fetch_active_planets(self) -> list[Planet]:
        payload = await self._call(
            "GET", "GetPlanets", {"active_only": 1, "language": self._language}
        )
        return self._decode(_Planets, payload, "GetPlanets").planets

    @tracked("GetPlanet")
    async def fetch_planet(self, planet_id: str) -> Planet:
        """Fetch one planet including its zones."""
        payload = await self._call(
            "GET", "GetPlanet", {"id": planet_id, "language": self._language}
        )
        planets = self._decode(_Planets, payload, "GetPlanet").planets
        if not planets:
            raise GameRejected(f"GetPlanet: planet {planet_id} not found")
        return planets[0]

    # ------------------------------------------------------------------
    # Player
    # ------------------------------------------------------------------

    @tracked("GetPlayerInfo")
    async def fetch_player(self, token: str) -> Player:
        payload = await self._call("POST", "GetPlayerInfo", {"access_token": token})
        return self._decode(Player, payload, "GetPlayerInfo")

    @tracked("JoinPlanet")
    async def join_planet(self, planet_id: str, token: str) -> None:
        await self._call(
            "POST", "JoinPlanet", {"id": planet_id, "access_token": token}
        )

    @tracked("JoinZone")
    async def join_zone(self, position: int, token: str) -> dict[str, Any]:
        """Join a regular zone; returns the ``zone_info`` the service echoes."""
        return await self._join("JoinZone", position, token)

    @tracked("JoinBossZone")
    async def join_boss_zone(self, position: int, token: str) -> dict[str, Any]:
        return await self._join("JoinBossZone", position, token)

    async def _join(self, method: str, position: int, token: str) -> dict[str, Any]:
        payload = await self._call(
            "POST", method, {"zone_position": position, "access_token": token}
        )
        zone_info = payload.get("zone_info")
        if not zone_info:
            raise GameRejected(f"{method}: failed joining zone {position}")
        return zone_info

    @tracked("ReportScore")
    async def report_score(self, score: int, token: str) -> str:
        """Submit a zone score; returns the player's new total score."""
        payload = await self._call(
            "POST", "ReportScore", {"score": score, "access_token": token}
        )
        new_score = payload.get("new_score")
        if new_score in (None, ""):
            raise GameRejected("ReportScore: score was not accepted")
        return str(new_score)

    @tracked("ReportBossDamage")
    async def report_boss_damage(
        self, damage: int, use_heal: bool, token: str
    ) -> BossDamageReport:
        """Report one boss tick.

        A response without ``boss_status`` is only valid while the lobby
        is still waiting for players or once the game is over.
        """
        payload = await self._call(
            "POST",
            "ReportBossDamage",
            {
                "access_token": token,
                "use_heal_ability": int(use_heal),
                "damage_to_boss": damage,
                "damage_taken": 0,
            },
        )
        report = self._decode(BossDamageReport, payload, "ReportBossDamage")
        if (
            report.boss_status is None
            and not report.game_over
            and not report.waiting_for_players
        ):
            raise GameRejected("ReportBossDamage: damage was not accepted")
        return report

    @tracked("LeaveGame")
    async def leave_game(self, game_id: str, token: str) -> None:
        """Leave a zone game, boss game or planet (planets are games too)."""
        await self._call(
            "POST",
            "LeaveGame",
            {"access_token": token, "gameid": game_id},
            service=LEAVE_SERVICE,
        )
