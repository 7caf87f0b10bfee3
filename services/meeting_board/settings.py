"""
Settings and configuration for the Meeting Board Service.
"""

from typing import Optional

from services.common.settings import (
    AliasChoices,
    BaseSettings,
    Field,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    matchmaking_api_url: str = Field(
        default="http://localhost:8010",
        description="Base URL of the event matchmaking REST API",
        validation_alias=AliasChoices("MATCHMAKING_API_URL"),
    )

    matchmaking_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token forwarded to the matchmaking API",
        validation_alias=AliasChoices("MATCHMAKING_API_TOKEN"),
    )

    matchmaking_api_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for matchmaking API requests",
        validation_alias=AliasChoices("MATCHMAKING_API_TIMEOUT"),
    )

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL for the shared meeting snapshot cache",
        validation_alias=AliasChoices("REDIS_URL"),
    )

    snapshot_cache_ttl_seconds: int = Field(
        default=300,
        description="How long a fetched meeting snapshot stays cached",
        validation_alias=AliasChoices("SNAPSHOT_CACHE_TTL_SECONDS"),
    )

    # Calendar grid defaults, used when no venue time window is supplied
    calendar_first_hour: int = Field(
        default=9,
        description="First hour row rendered on the calendar grid",
        validation_alias=AliasChoices("CALENDAR_FIRST_HOUR"),
    )
    calendar_last_hour: int = Field(
        default=18,
        description="Last hour row rendered on the calendar grid",
        validation_alias=AliasChoices("CALENDAR_LAST_HOUR"),
    )
    calendar_px_per_hour: float = Field(
        default=60.0,
        description="Pixel height of one hour row",
        validation_alias=AliasChoices("CALENDAR_PX_PER_HOUR"),
    )
    calendar_min_block_height: float = Field(
        default=20.0,
        description="Minimum pixel height of a rendered meeting block",
        validation_alias=AliasChoices("CALENDAR_MIN_BLOCK_HEIGHT"),
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias=AliasChoices("LOG_LEVEL"),
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
        validation_alias=AliasChoices("LOG_FORMAT"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
