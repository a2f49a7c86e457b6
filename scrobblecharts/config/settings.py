"""Configuration management using Pydantic Settings.

This module provides type-safe configuration management with automatic
environment variable loading and validation using Pydantic Settings.

The configuration is organized into logical groups:
- LoggingConfig: Logging levels, files, and debugging options
- CredentialsConfig: Last.fm API credentials
- APIConfig: Last.fm endpoint, pagination, concurrency and rate limiting
- ChartConfig: Bucketing calendar, genre collapsing and metadata defaults
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("scrobblecharts.log")
    real_time_debug: bool = True


class CredentialsConfig(BaseModel):
    """API credentials and authentication settings."""

    lastfm_key: str = ""
    lastfm_secret: str = ""
    lastfm_username: str = ""


class APIConfig(BaseModel):
    """Last.fm API configuration and rate limiting."""

    lastfm_base_url: str = "https://ws.audioscrobbler.com/2.0/"
    lastfm_timeout: float = 10.0
    lastfm_rate_limit: float = 5.0  # Calls per second (rate limiter)
    user_agent: str = "Scrobblecharts/0.1.0 (Listening History Charts)"

    # user.getRecentTracks pagination
    lastfm_page_size: int = 200  # Last.fm maximum
    lastfm_max_pages: int = 10
    lastfm_activity_max_pages: int = 50
    lastfm_page_concurrency: int = 4

    # track.getInfo / artist.getTopTags fan-out
    lastfm_metadata_concurrency: int = 8


class ChartConfig(BaseModel):
    """Chart aggregation defaults."""

    top_genre_count: int = 7
    default_tag_limit: int = 1
    default_duration_seconds: float = 180.0
    # Durations above this are assumed to be milliseconds
    duration_ms_threshold: float = 10000.0
    metadata_cache_capacity: int = 2048
    timezone: str = "UTC"
    first_weekday: int = 0  # 0 = Monday


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: LASTFM_KEY, LASTFM_USERNAME, CONSOLE_LOG_LEVEL
    - Nested: CREDENTIALS__LASTFM_KEY, LOGGING__CONSOLE_LEVEL, API__LASTFM_PAGE_SIZE

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    logging: LoggingConfig = LoggingConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    api: APIConfig = APIConfig()
    charts: ChartConfig = ChartConfig()

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Transform flat environment variables to nested structure.

        Handles flat env vars (LASTFM_KEY) and maps them to the nested
        structure expected by the models (credentials.lastfm_key).
        """
        if not isinstance(data, dict):
            return data

        transformed = {}

        log_mapping = {
            "console_log_level": "console_level",
            "file_log_level": "file_level",
            "log_file": "log_file",
            "log_real_time_debug": "real_time_debug",
        }
        for env_key, field_key in log_mapping.items():
            if env_key in data:
                transformed.setdefault("logging", {})[field_key] = data.pop(env_key)

        cred_mapping = {
            "lastfm_key": "lastfm_key",
            "lastfm_secret": "lastfm_secret",
            "lastfm_username": "lastfm_username",
        }
        for env_key, field_key in cred_mapping.items():
            if env_key in data:
                transformed.setdefault("credentials", {})[field_key] = data.pop(
                    env_key
                )

        chart_mapping = {
            "chart_timezone": "timezone",
            "chart_first_weekday": "first_weekday",
            "metadata_cache_capacity": "metadata_cache_capacity",
        }
        for env_key, field_key in chart_mapping.items():
            if env_key in data:
                transformed.setdefault("charts", {})[field_key] = data.pop(env_key)

        # Merge transformed nested structure back into data
        for section, values in transformed.items():
            existing = data.get(section)
            if isinstance(existing, dict):
                values = {**existing, **values}
            data[section] = values

        return data


# Singleton instance for application use
settings = Settings()


# =============================================================================
# BACKWARD COMPATIBILITY FUNCTIONS
# =============================================================================

_LEGACY_KEY_MAP = {
    # Logging settings
    "CONSOLE_LOG_LEVEL": lambda: settings.logging.console_level,
    "FILE_LOG_LEVEL": lambda: settings.logging.file_level,
    "LOG_FILE": lambda: settings.logging.log_file,
    "LOG_REAL_TIME_DEBUG": lambda: settings.logging.real_time_debug,
    # Credentials
    "LASTFM_KEY": lambda: settings.credentials.lastfm_key,
    "LASTFM_SECRET": lambda: settings.credentials.lastfm_secret,
    "LASTFM_USERNAME": lambda: settings.credentials.lastfm_username,
    # LastFM API settings
    "LASTFM_API_BASE_URL": lambda: settings.api.lastfm_base_url,
    "LASTFM_API_TIMEOUT": lambda: settings.api.lastfm_timeout,
    "LASTFM_API_RATE_LIMIT": lambda: settings.api.lastfm_rate_limit,
    "LASTFM_API_USER_AGENT": lambda: settings.api.user_agent,
    "LASTFM_RECENT_TRACKS_PAGE_SIZE": lambda: settings.api.lastfm_page_size,
    "LASTFM_RECENT_TRACKS_MAX_PAGES": lambda: settings.api.lastfm_max_pages,
    "LASTFM_ACTIVITY_MAX_PAGES": lambda: settings.api.lastfm_activity_max_pages,
    "LASTFM_PAGE_CONCURRENCY": lambda: settings.api.lastfm_page_concurrency,
    "LASTFM_METADATA_CONCURRENCY": lambda: settings.api.lastfm_metadata_concurrency,
    # Chart settings
    "CHART_TOP_GENRE_COUNT": lambda: settings.charts.top_genre_count,
    "CHART_DEFAULT_TAG_LIMIT": lambda: settings.charts.default_tag_limit,
    "CHART_DEFAULT_DURATION_SECONDS": lambda: settings.charts.default_duration_seconds,
    "CHART_DURATION_MS_THRESHOLD": lambda: settings.charts.duration_ms_threshold,
    "CHART_TIMEZONE": lambda: settings.charts.timezone,
    "CHART_FIRST_WEEKDAY": lambda: settings.charts.first_weekday,
    "METADATA_CACHE_CAPACITY": lambda: settings.charts.metadata_cache_capacity,
}


def get_config(key: str, default=None):
    """Get configuration value by key with optional default.

    Maps flat keys to the nested Pydantic settings structure.

    Args:
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default

    Example:
        >>> page_size = get_config("LASTFM_RECENT_TRACKS_PAGE_SIZE", 200)
    """
    if key in _LEGACY_KEY_MAP:
        return _LEGACY_KEY_MAP[key]()

    return default
