"""Configuration management using pydantic-settings.

Settings come from the environment and from ``.env`` / ``.env.local``
(local overrides shared). The Steam token keeps its conventional name;
tuning knobs use the ``SALIEN_`` prefix.

Usage:
    from salien.bot.config import settings
    for token in settings.tokens:
        ...
"""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://community.steam-api.com"


class Settings(BaseSettings):
    """Bot settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # CREDENTIALS
    # ==========================================================================

    steam_token: str = Field(
        default="",
        validation_alias="STEAM_TOKEN",
        description=(
            "Token from https://steamcommunity.com/saliengame/gettoken; "
            "comma-separate several to run one loop per account"
        ),
    )

    # ==========================================================================
    # REMOTE SERVICE
    # ==========================================================================

    api_base: str = Field(
        default=DEFAULT_API_BASE,
        validation_alias="SALIEN_API_BASE",
        description="Base URL of the game service",
    )

    language: str = Field(
        default="english",
        validation_alias="SALIEN_LANGUAGE",
        description="Language of planet names",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="SALIEN_HTTP_TIMEOUT_SECONDS",
    )

    max_concurrent_requests: int = Field(
        default=5,
        validation_alias="SALIEN_MAX_CONCURRENT_REQUESTS",
        description="Max simultaneous requests across all accounts",
    )

    min_request_interval_seconds: float = Field(
        default=0.0,
        validation_alias="SALIEN_MIN_REQUEST_INTERVAL_SECONDS",
        description="Minimum spacing between request starts (0 = none)",
    )

    # ==========================================================================
    # PLANET SELECTION
    # ==========================================================================

    planet_cache_ttl_seconds: float = Field(
        default=300.0,
        validation_alias="SALIEN_PLANET_CACHE_TTL_SECONDS",
        description="How long a best-planet scan is reused",
    )

    planet_retry_delay_seconds: float = Field(
        default=2.0,
        validation_alias="SALIEN_PLANET_RETRY_DELAY_SECONDS",
    )

    # ==========================================================================
    # ROUND TIMING
    # ==========================================================================

    stuck_threshold_seconds: int = Field(
        default=140,
        validation_alias="SALIEN_STUCK_THRESHOLD_SECONDS",
        description="Time in zone after which the game is abandoned",
    )

    min_dwell_seconds: int = Field(
        default=110,
        validation_alias="SALIEN_MIN_DWELL_SECONDS",
        description="Time in zone required before a score is accepted",
    )

    join_attempts: int = Field(default=3, validation_alias="SALIEN_JOIN_ATTEMPTS")

    join_retry_delay_seconds: float = Field(
        default=5.0,
        validation_alias="SALIEN_JOIN_RETRY_DELAY_SECONDS",
    )

    # ==========================================================================
    # BOSS ENCOUNTERS
    # ==========================================================================

    boss_tick_seconds: float = Field(
        default=5.0,
        validation_alias="SALIEN_BOSS_TICK_SECONDS",
    )

    boss_damage_per_tick: int = Field(
        default=45,
        validation_alias="SALIEN_BOSS_DAMAGE_PER_TICK",
    )

    heal_cooldown_seconds: float = Field(
        default=120.0,
        validation_alias="SALIEN_HEAL_COOLDOWN_SECONDS",
    )

    # ==========================================================================
    # ACCOUNT LOOP
    # ==========================================================================

    round_interval_seconds: float = Field(
        default=2.0,
        validation_alias="SALIEN_ROUND_INTERVAL_SECONDS",
    )

    round_jitter_seconds: float = Field(
        default=0.0,
        validation_alias="SALIEN_ROUND_JITTER_SECONDS",
        description="Random extra delay (0..jitter) after a successful round",
    )

    error_backoff_seconds: float = Field(
        default=8.0,
        validation_alias="SALIEN_ERROR_BACKOFF_SECONDS",
    )

    account_stagger_seconds: float = Field(
        default=3.0,
        validation_alias="SALIEN_ACCOUNT_STAGGER_SECONDS",
    )

    startup_attempts: int = Field(
        default=4,
        validation_alias="SALIEN_STARTUP_ATTEMPTS",
        description="Planet scans tried before giving up at startup",
    )

    startup_retry_delay_seconds: float = Field(
        default=1.0,
        validation_alias="SALIEN_STARTUP_RETRY_DELAY_SECONDS",
    )

    @property
    def tokens(self) -> list[str]:
        """Configured account tokens, in order."""
        return [token.strip() for token in self.steam_token.split(",") if token.strip()]


# Singleton instance
settings = Settings.model_validate({})
