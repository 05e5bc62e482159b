"""Tabkeeper configuration module.

Process settings come from the environment via pydantic-settings; user
options come from a YAML file that is re-read on every sweep.

Usage:
    from tabkeeper.config import get_settings, OptionsStore

    settings = get_settings()
    options = OptionsStore(settings.options_path).load_or_default()
    print(options.freeze_after_seconds)
"""

from functools import lru_cache

from tabkeeper.config.options import OPTION_KEYS, ConfigurationMissing, Options, OptionsStore
from tabkeeper.config.settings import Settings

__all__ = [
    "OPTION_KEYS",
    "ConfigurationMissing",
    "Options",
    "OptionsStore",
    "Settings",
    "get_settings",
]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    To reload settings, call get_settings.cache_clear() first.
    """
    return Settings()
