"""Turn processing models."""

from typing import Any

from pydantic import BaseModel, Field

from frontdesk.conversation.models import CallAction, TurnPhase
from frontdesk.routing.models import Decision, LaneAction, Route


class TurnRequest(BaseModel):
    """One classified caller utterance."""

    user_input: str = ""
    decision: Decision = Field(default_factory=Decision)


class TurnResponse(BaseModel):
    """Reply to speak and what to do next."""

    text: str
    call_action: CallAction
    route: Route | None
    reason: str
    lane_action: LaneAction
    transfer_target: str | None = None
    phase: TurnPhase
    booking_locked: bool
    awaiting_confirmation: bool
    turn_count: int
    debug: dict[str, Any] = Field(default_factory=dict)
