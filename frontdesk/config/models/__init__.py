"""Configuration section models."""

from frontdesk.config.models.api import APIConfig
from frontdesk.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from frontdesk.config.models.policy import PolicyCompilerConfig
from frontdesk.config.models.storage import StorageConfig
from frontdesk.config.models.turn import (
    BookingPromptsConfig,
    ConfirmationConfig,
    RescueConfig,
    ReturnLaneConfig,
    SpamConfig,
    TurnConfig,
)

__all__ = [
    "APIConfig",
    "BookingPromptsConfig",
    "ConfirmationConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PolicyCompilerConfig",
    "RescueConfig",
    "ReturnLaneConfig",
    "SpamConfig",
    "StorageConfig",
    "TurnConfig",
]
