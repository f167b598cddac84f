"""Shared test fixtures.

Round logic is tested against ``FakeGameClient`` and a
``RecordingScheduler`` that records delays instead of sleeping (see
tests/fakes.py).
"""

import pytest

from salien.bot.blacklist import ZoneBlacklist
from salien.bot.config import Settings
from salien.lib.cache import TTLCache
from tests.fakes import TOKEN, RecordingScheduler


@pytest.fixture
def game_settings() -> Settings:
    """Default settings with a test token."""
    return Settings(steam_token=TOKEN, _env_file=None)


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def blacklist() -> ZoneBlacklist:
    return ZoneBlacklist()


@pytest.fixture
def cache() -> TTLCache:
    return TTLCache(ttl=300.0)
