"""Per-call conversation state and turn results."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from frontdesk.policy.models import utc_now
from frontdesk.routing.models import LaneAction, Route, RouteResult

TRIAGE_HISTORY_LIMIT = 10


class TurnPhase(str, Enum):
    """Where the call is in its lifecycle."""

    FREE = "free"
    TRIAGE = "triage"
    BOOKING = "booking"
    POST_BOOKING = "post_booking"
    RESCUE = "rescue"
    COMPLETE = "complete"


class BookingStep(str, Enum):
    """Next field the booking slot-filler asks for."""

    ASK_NAME = "ask_name"
    ASK_PHONE = "ask_phone"
    ASK_ADDRESS = "ask_address"
    ASK_TIME = "ask_time"
    POST_BOOKING = "post_booking"
    COMPLETE = "complete"


# Required booking fields in collection order
SLOT_STEPS: tuple[tuple[str, BookingStep], ...] = (
    ("name", BookingStep.ASK_NAME),
    ("phone", BookingStep.ASK_PHONE),
    ("address", BookingStep.ASK_ADDRESS),
    ("time", BookingStep.ASK_TIME),
)


class ConfirmationSeverity(str, Enum):
    """Why a route was held for caller confirmation."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CallAction(str, Enum):
    """What telephony should do after speaking the reply."""

    CONTINUE = "continue"
    TRANSFER = "transfer"
    HANGUP = "hangup"


class PendingConfirmation(BaseModel):
    """A route held until the caller says yes."""

    action: Route
    severity: ConfirmationSeverity
    question: str
    route_result: RouteResult
    asked_at_turn: int = 0


class LaneContext(BaseModel):
    """Return-lane counters."""

    current_lane: str | None = None
    turns_in_lane: int = 0
    push_count: int = 0
    thresholds: dict[str, int] = Field(default_factory=dict)


class CallTurnState(BaseModel):
    """Mutable state of one call, persisted between turns."""

    model_config = ConfigDict(validate_assignment=True)

    call_id: UUID
    tenant_id: UUID
    phase: TurnPhase = TurnPhase.FREE
    booking_locked: bool = False
    booking_step: BookingStep = BookingStep.ASK_NAME
    collected_slots: dict[str, str] = Field(default_factory=dict)
    pending_confirmation: PendingConfirmation | None = None
    lane_context: LaneContext = Field(default_factory=LaneContext)
    turn_count: int = 0
    frustration_count: int = 0
    spam_detected: bool = False
    last_intent: str | None = None
    entities: dict[str, Any] = Field(default_factory=dict)
    flags: dict[str, bool] = Field(default_factory=dict)
    triage_history: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def record_route(self, route: Route) -> None:
        """Append to the triage history, keeping the most recent entries."""
        self.triage_history = [*self.triage_history, route.value][-TRIAGE_HISTORY_LIMIT:]


class TurnResult(BaseModel):
    """Everything the caller-facing layer needs after one turn."""

    text: str
    call_action: CallAction = CallAction.CONTINUE
    route: Route | None = None
    reason: str
    lane_action: LaneAction = LaneAction.NONE
    transfer_target: str | None = None
    call_state: CallTurnState
    debug: dict[str, Any] = Field(default_factory=dict)
