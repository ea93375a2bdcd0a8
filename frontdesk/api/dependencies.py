"""Dependency injection for API routes.

The engine is built once from settings and can be overridden in tests via
``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends

from frontdesk.config import get_settings as _load_settings
from frontdesk.config.settings import Settings
from frontdesk.engine import FrontDeskEngine
from frontdesk.observability.logging import get_logger

logger = get_logger(__name__)

_engine: FrontDeskEngine | None = None


def get_settings() -> Settings:
    """Get application settings."""
    return _load_settings()


def get_engine() -> FrontDeskEngine:
    """Get the shared engine, building it on first use."""
    global _engine
    if _engine is None:
        _engine = FrontDeskEngine.from_settings(get_settings())
        logger.info("engine_created", backend=_engine.settings.storage.backend)
    return _engine


def reset_engine() -> None:
    """Drop the shared engine (test utility)."""
    global _engine
    _engine = None


SettingsDep = Annotated[Settings, Depends(get_settings)]
EngineDep = Annotated[FrontDeskEngine, Depends(get_engine)]
