"""Configuration package."""

from src.config.settings import (
    AppSettings,
    AuthSettings,
    NotionSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AuthSettings",
    "NotionSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
