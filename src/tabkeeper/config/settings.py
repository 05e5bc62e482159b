"""Tabkeeper process settings using pydantic-settings."""

from functools import cached_property
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RESTRICTED_PREFIXES = [
    "chrome://",
    "chrome-extension://",
    "edge://",
    "about:",
]


class Settings(BaseSettings):
    """Process-wide settings for the Tabkeeper service.

    Settings are loaded from environment variables with the TABKEEPER_ prefix.
    For example, TABKEEPER_DISMISS_GRACE_SECONDS=60 sets dismiss_grace_seconds.

    User-facing options (enable switches and thresholds) live in the options
    file instead, see tabkeeper.config.options.
    """

    model_config = SettingsConfigDict(
        env_prefix="TABKEEPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sweep settings
    tick_interval: float = 1.0  # seconds between sweeps
    warn_lead_seconds: float = 5.0  # warn this long before the close threshold

    # Grace settings
    dismiss_grace_seconds: float = 30.0
    reactivate_grace_seconds: float = 5.0
    overlay_display_seconds: float = 5.0

    # Pages that must never be frozen or closed
    restricted_url_prefixes: list[str] = DEFAULT_RESTRICTED_PREFIXES
    self_id: str | None = None  # our own id as it appears in our page URLs

    # File paths
    options_file: Path = Path("~/.config/tabkeeper/options.yaml")

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None
    instance_id: str | None = None  # added to every log record

    @field_validator(
        "tick_interval",
        "dismiss_grace_seconds",
        "reactivate_grace_seconds",
        "overlay_display_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Ensure durations are positive."""
        if v <= 0:
            raise ValueError("durations must be greater than zero")
        return v

    @field_validator("warn_lead_seconds")
    @classmethod
    def validate_warn_lead(cls, v: float) -> float:
        """Ensure the warning lead time is not negative."""
        if v < 0:
            raise ValueError("warn_lead_seconds must not be negative")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @cached_property
    def options_path(self) -> Path:
        """Return expanded options file path."""
        return self.options_file.expanduser()
