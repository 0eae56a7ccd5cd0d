"""Twake Drive pack settings, loaded from TWAKE_DRIVE_* environment variables."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TwakeDriveSettings(BaseSettings):
    """Tunables for Drive listing and transfers."""

    model_config = SettingsConfigDict(
        env_prefix="TWAKE_DRIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    page_limit: int = Field(
        default=30,
        description="Directory entries requested per page (page[limit])",
    )
    max_list_items: int = Field(
        default=2000,
        description="Stop listing a folder once this many entries were collected",
    )
    transfer_timeout_s: float = Field(
        default=120.0,
        description="Timeout for uploads and downloads in seconds",
    )

    @field_validator("page_limit", "max_list_items")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v


_settings: TwakeDriveSettings | None = None


def get_settings() -> TwakeDriveSettings:
    """Get or create the pack settings instance."""
    global _settings
    if _settings is None:
        _settings = TwakeDriveSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
