"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what the client talks to and where it keeps
the session token, and ensures configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Remote expense API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the expense API (without trailing slash)"
    )
    # None means whatever the transport does by default (no timeout)
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Per-request timeout in seconds"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are appended with a leading slash."""
        v = v.strip()
        if not v:
            raise ValueError("API base URL cannot be empty")
        return v.rstrip("/")


class SessionSettings(BaseSettings):
    """Where the bearer token is persisted between runs."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    token_file: str = Field(
        default="~/.expense_tracker/session.json",
        description="JSON file used as local key/value storage"
    )
    token_key: str = Field(
        default="authToken",
        min_length=1,
        description="Key under which the token is stored"
    )

    @property
    def token_path(self) -> Path:
        """Token file with the user directory expanded."""
        return Path(self.token_file).expanduser()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local logs"
    )

    # Calendar
    app_timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone for 'today' and monthly eligibility (local time if unset)"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('app_timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        try:
            ZoneInfo(v.strip())
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v.strip()

    @property
    def tzinfo(self) -> Optional[ZoneInfo]:
        """Configured timezone, or None for local time."""
        return ZoneInfo(self.app_timezone) if self.app_timezone else None


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def session(self) -> SessionSettings:
        return SessionSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    {setting_name}_error entry for every failure.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("api", "session", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
