"""Configuration and settings management using pydantic-settings."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SdkSettings(BaseSettings):
    """Node SDK settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="NODE_SDK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' or 'text'",
    )

    # HTTP settings
    http_timeout_s: float = Field(
        default=30.0,
        description="Default timeout for outgoing HTTP requests in seconds",
    )

    # OAuth2 settings
    oauth_expiry_buffer_s: int = Field(
        default=60,
        description="Refresh OAuth2 tokens this many seconds before expiry",
    )
    oauth_refresh_timeout_s: float = Field(
        default=15.0,
        description="Timeout for OAuth2 token refresh requests in seconds",
    )

    @field_validator("http_timeout_s", "oauth_refresh_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that timeouts are positive."""
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate the log format name."""
        value = v.lower()
        if value not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return value


# Global settings instance
_settings: SdkSettings | None = None


def get_settings() -> SdkSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = SdkSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
