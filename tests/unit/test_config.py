"""Tests for Settings."""

import pytest

from salien.bot.config import DEFAULT_API_BASE, Settings


def test_defaults() -> None:
    config = Settings(_env_file=None)

    assert config.api_base == DEFAULT_API_BASE
    assert config.planet_cache_ttl_seconds == 300
    assert config.stuck_threshold_seconds == 140
    assert config.min_dwell_seconds == 110
    assert config.join_attempts == 3
    assert config.error_backoff_seconds == 8


def test_tokens_split_on_commas() -> None:
    config = Settings(steam_token=" tok1, tok2 ,,tok3 ", _env_file=None)
    assert config.tokens == ["tok1", "tok2", "tok3"]


def test_token_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STEAM_TOKEN", "envtoken")
    monkeypatch.setenv("SALIEN_MIN_DWELL_SECONDS", "90")

    config = Settings(_env_file=None)

    assert config.tokens == ["envtoken"]
    assert config.min_dwell_seconds == 90


def test_no_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STEAM_TOKEN", raising=False)
    assert Settings(_env_file=None).tokens == []
