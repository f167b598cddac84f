"""Tests for the zone blacklist."""

from salien.bot.blacklist import ZoneBlacklist


def test_empty() -> None:
    blacklist = ZoneBlacklist()
    assert not blacklist.contains("A", 1)
    assert len(blacklist) == 0


def test_add_is_idempotent() -> None:
    once = ZoneBlacklist()
    once.add("A", 1)

    twice = ZoneBlacklist()
    twice.add("A", 1)
    twice.add("A", 1)

    assert once.contains("A", 1) and twice.contains("A", 1)
    assert len(once) == len(twice) == 1


def test_entries_are_per_planet() -> None:
    blacklist = ZoneBlacklist()
    blacklist.add("A", 1)

    assert ("A", 1) in blacklist
    assert ("B", 1) not in blacklist
    assert ("A", 2) not in blacklist
