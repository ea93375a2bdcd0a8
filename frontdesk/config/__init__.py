"""Configuration loading for frontdesk.

Usage:
    from frontdesk.config import get_settings

    settings = get_settings()
    threshold = settings.policy.overlap_threshold
"""

from functools import lru_cache

from frontdesk.config.loader import load_config
from frontdesk.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings instance.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml
    3. config/{FRONTDESK_ENV}.toml
    4. FRONTDESK_* environment variables

    Returns:
        Validated Settings instance
    """
    set_toml_config(load_config())
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and load them again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
