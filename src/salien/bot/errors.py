"""Error taxonomy for the bot.

Every error raised while playing a round derives from ``SalienError``.
None of them is fatal to an account loop: the loop logs the error, backs
off, and replays the round from freshly fetched state.
"""

from enum import Enum


class SalienError(Exception):
    """Base class for bot errors."""


class ConnectivityError(SalienError):
    """Transport failure, or a body that does not decode into the expected shape."""


class GameRejected(SalienError):
    """The service answered with its "operation failed" sentinel."""


class RoundFailure(str, Enum):
    TIMEOUT = "timeout"
    PLANET_CHANGED = "planet-changed"
    RESET = "reset"


class RoundFailed(SalienError):
    """A round was aborted on purpose after cleaning up remote state."""

    def __init__(self, reason: RoundFailure, detail: str = "") -> None:
        self.reason = reason
        self.detail = detail
        message = f"round failed ({reason.value})"
        super().__init__(f"{message}: {detail}" if detail else message)


class NoZoneAvailable(SalienError):
    """Every zone of the planet is captured or blacklisted."""


class NoPlanetAvailable(SalienError):
    """No active planet has a joinable zone."""


class ZoneBlacklisted(SalienError):
    """A zone kept rejecting joins and is now excluded for good."""

    def __init__(self, planet_id: str, position: int) -> None:
        self.planet_id = planet_id
        self.position = position
        super().__init__(
            f"zone {planet_id}-{position} is potentially full and is now blacklisted"
        )


class ConcurrentJoinDetected(SalienError):
    """The player showed up in another zone while a join was being retried."""


class StaleSubmission(SalienError):
    """No active zone game at submission time; the planet or zone changed."""


def is_transient(exc: BaseException) -> bool:
    """Failures worth retrying at the same call site."""
    return isinstance(exc, ConnectivityError | GameRejected)
