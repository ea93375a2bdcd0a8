"""Per-call turn handling."""

from frontdesk.conversation.models import (
    BookingStep,
    CallAction,
    CallTurnState,
    LaneContext,
    PendingConfirmation,
    TurnPhase,
    TurnResult,
)

__all__ = [
    "BookingStep",
    "CallAction",
    "CallTurnState",
    "LaneContext",
    "PendingConfirmation",
    "TurnPhase",
    "TurnResult",
]
