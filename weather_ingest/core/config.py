"""
Configuration module with strict validation.

Key principles:
- Process startup only requires DATABASE_URL
- OpenWeatherMap polling requires OPENWEATHER_API_KEY (skipped without it)
- Per-source enable switches and cadences are plain settings, read once at
  startup and handed to the orchestrator as data
- Safe defaults for all optional settings
"""
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from weather_ingest.core.api_errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings with validation.

    Loads from environment variables and .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database (REQUIRED)
    database_url: str = Field(
        ...,
        description="SQLAlchemy connection URL"
    )

    # Upstream credentials
    openweather_api_key: Optional[str] = Field(
        default=None,
        description="OpenWeatherMap API key - secondary forecasts are skipped without it"
    )

    nws_user_agent: str = Field(
        default="weather-ingest (ops@example.com)",
        description="User-Agent sent to api.weather.gov, which rejects anonymous clients"
    )

    # Aviation feed
    aviation_feed_format: str = Field(
        default="json",
        description="Aviation Weather Center payload format: 'json' (current) or 'xml' (legacy)"
    )

    aviation_hours_before_now: int = Field(
        default=2,
        ge=1,
        le=72,
        description="How far back METAR/TAF reports are requested"
    )

    # Per-source enable switches
    scheduler_aviation_enabled: bool = Field(default=True)
    scheduler_nws_enabled: bool = Field(default=True)
    scheduler_nhc_enabled: bool = Field(default=True)
    scheduler_openweather_enabled: bool = Field(default=False)
    scheduler_retention_enabled: bool = Field(default=True)

    # Cadences (cron fields, UTC)
    aviation_cron_minute: str = Field(default="*/15")
    nws_cron_minute: str = Field(default="*/30")
    openweather_cron_hour: str = Field(default="*/2")
    nhc_cron_minute: str = Field(default="0")
    retention_cron_hour: str = Field(default="2")

    # Retention
    retention_days: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Records fetched longer ago than this are retired"
    )

    retention_purge_enabled: bool = Field(
        default=False,
        description="Also hard-delete aged records during the daily sweep"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # Retry Configuration
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum number of attempts for failed upstream requests"
    )

    retry_backoff_factor: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Exponential backoff factor for retries"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("aviation_feed_format")
    @classmethod
    def validate_aviation_feed_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {"json", "xml"}:
            raise ValueError("aviation_feed_format must be 'json' or 'xml'")
        return v_lower

    def require_openweather_api_key(self) -> str:
        """
        Get OpenWeatherMap API key, raising clear error if missing.

        Raises:
            ConfigurationError: If the key is not configured

        Returns:
            str: The API key
        """
        if not self.openweather_api_key:
            raise ConfigurationError(
                "OPENWEATHER_API_KEY is required for OpenWeatherMap forecasts. "
                "Please set it in your .env file or environment variables. "
                "Get a key at: https://home.openweathermap.org/api_keys",
                source="openweathermap",
                missing_config="openweather_api_key",
            )
        return self.openweather_api_key


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    Lazily loaded on first access so tests can reset it between runs.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (used by tests)."""
    global _settings
    _settings = None
