"""User options persisted as YAML and re-read on every sweep."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tabkeeper.logging import config_logger

logger = logging.getLogger(__name__)


class ConfigurationMissing(Exception):
    """Raised when the persisted options file cannot be read as a mapping.

    The sweep never blocks on this: callers fall back to the documented
    defaults and try again on the next tick.
    """

    pass


class Options(BaseModel):
    """User-facing switches and thresholds.

    Field aliases are the persisted keys, so an options file written by an
    options page can be read unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    extension_enabled: bool = Field(True, alias="extensionEnabled")
    page_freezer_enabled: bool = Field(True, alias="pageFreezerEnabled")
    freeze_after_seconds: int = Field(5, alias="freezeAfterSeconds", ge=1)
    frozen_close_seconds: int = Field(300, alias="frozenCloseSeconds", ge=1)

    def to_persisted(self) -> dict[str, Any]:
        """Return the options keyed by their persisted names."""
        return self.model_dump(by_alias=True)


# Persisted key -> field name
OPTION_KEYS: dict[str, str] = {
    field.alias: name for name, field in Options.model_fields.items() if field.alias
}


class OptionsStore:
    """Reads and writes the options YAML file.

    A missing file is not an error: it simply means every option has its
    default. Missing keys are default-filled on read.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Options:
        """Load options from disk.

        Keys are validated one at a time: a key with an invalid value takes
        its default and the rest of the file still applies.

        Raises:
            ConfigurationMissing: The file exists but cannot be parsed or
                does not hold a mapping.
        """
        if not self.path.exists():
            return Options()

        try:
            with open(self.path) as f:
                raw = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            raise ConfigurationMissing(f"cannot read {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationMissing(f"{self.path} does not contain a mapping")

        valid: dict[str, Any] = {}
        for key, value in raw.items():
            if key not in OPTION_KEYS:
                continue
            try:
                Options.model_validate({key: value})
            except ValidationError as e:
                config_logger().warning(
                    "Invalid option, using default",
                    extra={
                        "event": "option_invalid",
                        "key": key,
                        "error": e.errors()[0]["msg"],
                    },
                )
                continue
            valid[key] = value

        return Options.model_validate(valid)

    def load_or_default(self) -> Options:
        """Load options, falling back to defaults when they are unreadable."""
        try:
            return self.load()
        except ConfigurationMissing as e:
            logger.warning("Using default options: %s", e)
            return Options()

    def save(self, options: Options) -> None:
        """Write options to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(options.to_persisted(), f, default_flow_style=False)

    def reset(self) -> None:
        """Remove the options file so every option reverts to its default."""
        self.path.unlink(missing_ok=True)
