"""Process-wide memory of zones that refuse joins.

Shared by every account. Entries are never evicted: a zone that turned
away three join attempts is rarely free again soon enough to matter.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class ZoneBlacklist:
    """Set of ``(planet_id, zone_position)`` pairs.

    Only ``add`` and ``contains`` are exposed; both take the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._zones: dict[str, set[int]] = {}

    def add(self, planet_id: str, position: int) -> None:
        """Blacklist a zone. Adding an existing entry is a no-op."""
        with self._lock:
            positions = self._zones.setdefault(planet_id, set())
            if position in positions:
                return
            positions.add(position)
        logger.info("Blacklisted zone %s-%d", planet_id, position)

    def contains(self, planet_id: str, position: int) -> bool:
        with self._lock:
            return position in self._zones.get(planet_id, ())

    def __contains__(self, item: tuple[str, int]) -> bool:
        return self.contains(*item)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(positions) for positions in self._zones.values())
