"""Environment-based configuration using pydantic-settings.

Supplies the defaults a DataLoader falls back to when an option is not
passed explicitly, plus logging configuration.

Example:
    >>> from batchloader.config import get_settings
    >>> settings = get_settings()
    >>> settings.cache.enabled
    True

    # Or with environment variables:
    # BATCHLOADER_BATCH_MAX_SIZE=100
    # BATCHLOADER_CACHE_ENABLED=false
    # BATCHLOADER_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class BatchSettings(BaseSettings):
    """Batch accumulation defaults."""

    model_config = SettingsConfigDict(
        env_prefix="BATCHLOADER_BATCH_",
        extra="ignore",
    )

    max_size: PositiveInt | None = Field(default=None, description="Max keys per batch (None = unbounded)")


class CacheSettings(BaseSettings):
    """Cache-related configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BATCHLOADER_CACHE_",
        extra="ignore",
    )

    enabled: bool = True


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BATCHLOADER_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"


class LoaderSettings(BaseSettings):
    """Root settings for batchloader.

    Example environment variables:
        BATCHLOADER_BATCH_MAX_SIZE=250
        BATCHLOADER_CACHE_ENABLED=false
        BATCHLOADER_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="BATCHLOADER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    batch: BatchSettings = Field(default_factory=BatchSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> LoaderSettings:
    """Get the global settings instance (cached)."""
    return LoaderSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
