"""
Configuration management for League Client using pydantic-settings.

Environment variables are loaded from .env file and validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Remote API location and transport settings."""

    base_url: str = Field(
        default="http://127.0.0.1:8000", description="League API base URL"
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Transport timeout in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="LEAGUE_API_")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so paths can be appended directly."""
        return v.rstrip("/")


class CacheSettings(BaseSettings):
    """Session cache configuration."""

    ttl: float = Field(
        default=300.0, gt=0, description="Default cache TTL in seconds (5 minutes)"
    )

    model_config = SettingsConfigDict(env_prefix="CACHE_")


class StorageSettings(BaseSettings):
    """Durable storage for the token and league context."""

    path: Path = Field(
        default=Path(".league_client.json"),
        description="JSON file used by the CLI as durable storage",
    )
    token_key: str = Field(default="mpl_token", description="Storage key for the token")
    league_key: str = Field(
        default="mpl.leagueContext.v2", description="Storage key for the league context"
    )

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    @field_validator("path", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Convert string to Path."""
        return Path(v)


class AppSettings(BaseSettings):
    """General application settings."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )

    model_config = SettingsConfigDict(env_prefix="")


class Settings(BaseSettings):
    """Main settings class combining all configuration sections."""

    api: ApiSettings = Field(default_factory=ApiSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings.
    """
    from dotenv import load_dotenv

    env_paths = [
        Path(".env"),
        Path(__file__).parent.parent.parent / ".env",
    ]

    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path, override=True)
            break

    return Settings()
