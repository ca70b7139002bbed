"""Configuration package."""

from expense_tracker.config.settings import (
    ApiSettings,
    AppSettings,
    SessionSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "SessionSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
