"""
Configuration management for the anime list service.
Uses pydantic-settings for environment-based configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Settings
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Anime List"
    DEBUG: bool = False

    # Database (SQLite by default, PostgreSQL via asyncpg also works)
    DATABASE_URL: str = "sqlite+aiosqlite:///./animelist.db"

    # Milliseconds SQLite waits on a locked database before a write fails
    DB_BUSY_TIMEOUT_MS: int = 5000

    # Import retry policy (linear backoff on busy/locked storage)
    IMPORT_MAX_ATTEMPTS: int = 3
    IMPORT_BACKOFF_BASE: float = 0.2

    # Upload limit for MAL export files
    MAX_UPLOAD_SIZE: int = 20 * 1024 * 1024  # 20MB

    # Jikan (public MyAnimeList API) enrichment source
    JIKAN_BASE_URL: str = "https://api.jikan.moe/v4"
    JIKAN_TIMEOUT_SECONDS: float = 15.0

    # Enrichment rate limiting and retry (exponential backoff on 429)
    ENRICHMENT_REQUEST_DELAY: float = 1.5
    ENRICHMENT_MAX_ATTEMPTS: int = 4
    ENRICHMENT_BACKOFF_BASE: float = 1.0
    ENRICHMENT_BACKOFF_MAX: float = 30.0

    # Seed for custom tag colors; unset means nondeterministic
    TAG_COLOR_SEED: int | None = None

    # Logging
    LOG_LEVEL: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
