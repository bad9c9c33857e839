"""Configuration module - settings and environment management."""

from src.config.settings import (
    ConfigurationError,
    DEFAULT_BASE_URL,
    MAX_PAGE_SIZE,
    Settings,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "DEFAULT_BASE_URL",
    "MAX_PAGE_SIZE",
    "Settings",
    "load_settings",
]
