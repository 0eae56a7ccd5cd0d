"""Tests for configuration settings."""
import pytest
from pydantic import ValidationError

from nodepacks.twake_drive.settings import TwakeDriveSettings
from nodepacks.twake_drive.settings import get_settings as get_pack_settings
from src.node_sdk.settings import SdkSettings, get_settings, reset_settings


class TestSdkSettings:
    """Test SdkSettings configuration."""

    def test_settings_default_values(self, monkeypatch):
        """Test default values are set correctly."""
        monkeypatch.delenv("NODE_SDK_LOG_LEVEL", raising=False)
        monkeypatch.delenv("NODE_SDK_HTTP_TIMEOUT_S", raising=False)

        settings = SdkSettings()

        # Note: env is set to 'test' in conftest.py
        assert settings.env in ("development", "test")
        assert settings.log_level == "INFO"
        assert settings.http_timeout_s == 30
        assert settings.oauth_expiry_buffer_s == 60
        assert settings.oauth_refresh_timeout_s == 15

    def test_settings_env_prefix(self, monkeypatch):
        """Test that NODE_SDK_ prefix works for environment variables."""
        monkeypatch.setenv("NODE_SDK_ENV", "production")
        monkeypatch.setenv("NODE_SDK_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("NODE_SDK_LOG_FORMAT", "JSON")

        settings = SdkSettings()

        assert settings.env == "production"
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"

    def test_timeout_validation(self, monkeypatch):
        """Test that timeouts must be positive."""
        monkeypatch.setenv("NODE_SDK_HTTP_TIMEOUT_S", "0")

        with pytest.raises(ValidationError) as exc_info:
            SdkSettings()

        assert "timeouts must be positive" in str(exc_info.value)

    def test_log_format_validation(self, monkeypatch):
        """Test that only json and text log formats are accepted."""
        monkeypatch.setenv("NODE_SDK_LOG_FORMAT", "xml")

        with pytest.raises(ValidationError):
            SdkSettings()

    def test_get_settings_singleton(self):
        """Test that get_settings returns singleton instance."""
        reset_settings()
        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2

    def test_reset_settings(self):
        """Test that reset_settings clears the singleton."""
        settings1 = get_settings()
        reset_settings()
        settings2 = get_settings()

        assert settings1 is not settings2


class TestTwakeDriveSettings:
    """Test the Twake Drive pack settings."""

    def test_default_values(self, monkeypatch):
        for name in ("PAGE_LIMIT", "MAX_LIST_ITEMS", "TRANSFER_TIMEOUT_S"):
            monkeypatch.delenv(f"TWAKE_DRIVE_{name}", raising=False)

        settings = TwakeDriveSettings()

        assert settings.page_limit == 30
        assert settings.max_list_items == 2000
        assert settings.transfer_timeout_s == 120

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TWAKE_DRIVE_PAGE_LIMIT", "100")
        monkeypatch.setenv("TWAKE_DRIVE_MAX_LIST_ITEMS", "50")

        settings = get_pack_settings()

        assert settings.page_limit == 100
        assert settings.max_list_items == 50

    def test_page_limit_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("TWAKE_DRIVE_PAGE_LIMIT", "0")

        with pytest.raises(ValidationError):
            TwakeDriveSettings()
