"""Typed views of the game service's JSON payloads.

All of these are snapshots: they are built from a single response,
used for one round, and thrown away. The service is the only source of
truth for progress and capture flags.
"""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

BOSS_ZONE_TYPE = 4
BOSS_DIFFICULTY_RANK = 9
"""Ranking value of a zone with an active boss; outranks every regular tier."""

SCORE_BY_DIFFICULTY = {1: 600, 2: 1200, 3: 2400}


def _as_str(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, int | float):
        return str(value)
    return value


GameId = Annotated[str, BeforeValidator(_as_str)]
"""Identifier the service sends as either a string or a number."""


def zone_score(difficulty: int) -> int:
    """Score reported for one completed stay in a regular zone."""
    return SCORE_BY_DIFFICULTY[difficulty]


class Zone(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    position: int = Field(alias="zone_position")
    captured: bool = False
    capture_progress: float = 0.0
    difficulty: int = 1
    type: int = 0
    boss_active: bool = False
    game_id: GameId = Field(default="", alias="gameid")

    @property
    def is_boss(self) -> bool:
        return self.type == BOSS_ZONE_TYPE or self.difficulty >= BOSS_ZONE_TYPE

    @property
    def has_active_boss(self) -> bool:
        """Uncaptured zone currently running a boss encounter."""
        return self.boss_active and not self.captured


class PlanetState(BaseModel):
    name: str = ""
    active: bool = False
    captured: bool = False
    capture_progress: float = 0.0


class Planet(BaseModel):
    id: GameId
    state: PlanetState = Field(default_factory=PlanetState)
    zones: list[Zone] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.state.name or self.id

    @property
    def progress(self) -> float:
        return self.state.capture_progress

    @property
    def joinable(self) -> bool:
        """Active and not yet captured."""
        return self.state.active and not self.state.captured

    def zone_at(self, position: int) -> Zone | None:
        for zone in self.zones:
            if zone.position == position:
                return zone
        return None


class Player(BaseModel):
    """Live player status, re-fetched every round."""

    level: int = 0
    active_planet: GameId = ""
    active_zone_game: GameId = ""
    active_zone_position: GameId = ""
    active_boss_game: GameId = ""
    time_in_zone: int = 0
    score: GameId = "0"
    next_level_score: GameId = "0"

    @property
    def in_game(self) -> bool:
        return bool(self.active_zone_game or self.active_boss_game)

    @property
    def zone_position(self) -> int | None:
        if not self.active_zone_position.isdigit():
            return None
        return int(self.active_zone_position)


class BossStatus(BaseModel):
    boss_hp: int = 0
    boss_max_hp: int = 0


class BossDamageReport(BaseModel):
    boss_status: BossStatus | None = None
    waiting_for_players: bool = False
    game_over: bool = False


class BestPlanet(BaseModel):
    """Result of a planet scan, as stored in the best-planet cache."""

    planet_id: str
    name: str
    difficulty: int
    progress: float


class PlanetRank(BaseModel):
    """One row of a planet scan."""

    planet_id: str
    name: str
    difficulty: int = Field(description="Best available difficulty, 0 if none")
    progress: float


class RoundAction(str, Enum):
    SCORED = "scored"
    RECOVERED = "recovered"
    BOSS = "boss"


class RoundResult(BaseModel):
    """Outcome of a successful round."""

    round_number: int
    action: RoundAction
    planet_id: str
    zone_position: int | None = None
    old_score: str = ""
    new_score: str = ""
