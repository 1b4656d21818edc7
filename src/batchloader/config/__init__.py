"""Configuration management using pydantic-settings."""

from .settings import (
    BatchSettings,
    CacheSettings,
    LoaderSettings,
    LoggingSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "BatchSettings",
    "CacheSettings",
    "LoaderSettings",
    "LoggingSettings",
    "clear_settings_cache",
    "get_settings",
]
