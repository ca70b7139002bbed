"""Tests for environment-driven settings."""

import pytest
from pathlib import Path

from expense_tracker.config import (
    ApiSettings,
    AppSettings,
    SessionSettings,
    validate_all_settings,
)


class TestSettings:

    def test_api_defaults(self, monkeypatch):
        monkeypatch.delenv("EXPENSE_API_BASE_URL", raising=False)
        settings = ApiSettings(_env_file=None)
        assert settings.base_url == "http://localhost:8080/api"
        assert settings.timeout_seconds is None

    def test_api_from_environment(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_API_BASE_URL", "https://gastos.example.com/api/")
        monkeypatch.setenv("EXPENSE_API_TIMEOUT_SECONDS", "5")
        settings = ApiSettings(_env_file=None)
        assert settings.base_url == "https://gastos.example.com/api"
        assert settings.timeout_seconds == 5.0

    def test_empty_base_url_rejected(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_API_BASE_URL", "  ")
        with pytest.raises(ValueError):
            ApiSettings(_env_file=None)

    def test_session_token_path_expands_home(self, monkeypatch):
        monkeypatch.setenv("EXPENSE_SESSION_TOKEN_FILE", "~/tracker/session.json")
        settings = SessionSettings(_env_file=None)
        assert settings.token_path == Path.home() / "tracker" / "session.json"
        assert settings.token_key == "authToken"

    def test_app_log_level_and_timezone(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("APP_TIMEZONE", "America/Argentina/Buenos_Aires")
        settings = AppSettings(_env_file=None)
        assert settings.log_level == "DEBUG"
        assert settings.tzinfo.key == "America/Argentina/Buenos_Aires"

    def test_unknown_timezone_rejected(self, monkeypatch):
        monkeypatch.setenv("APP_TIMEZONE", "Mars/Olympus_Mons")
        with pytest.raises(ValueError):
            AppSettings(_env_file=None)

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        status = validate_all_settings()
        assert status["api"] is True
        assert status["app"] is False
        assert "Unknown log level" in status["app_error"]
