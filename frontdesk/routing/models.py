"""Routing domain models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from frontdesk.policy.models import DEFAULT_PRIORITY


class RuleAction(str, Enum):
    """What a triage card asks for when it matches."""

    ROUTE_TO_SCENARIO_ENGINE = "ROUTE_TO_SCENARIO_ENGINE"
    START_BOOKING = "START_BOOKING"
    ESCALATE = "ESCALATE"
    TAKE_MESSAGE = "TAKE_MESSAGE"
    END_CALL = "END_CALL"


class Route(str, Enum):
    """Handling path for a turn."""

    SCENARIO_ENGINE = "SCENARIO_ENGINE"
    BOOKING = "BOOKING"
    TRANSFER = "TRANSFER"
    MESSAGE_ONLY = "MESSAGE_ONLY"
    END_CALL = "END_CALL"


class LaneAction(str, Enum):
    """Follow-up nudge attached to a response by the return-lane policy."""

    NONE = "NONE"
    PUSH_BOOKING = "PUSH_BOOKING"
    ESCALATE = "ESCALATE"
    TAKE_MESSAGE = "TAKE_MESSAGE"
    END_CALL = "END_CALL"

    @property
    def is_hard(self) -> bool:
        """Whether the action ends or hands off the conversation."""
        return self in (LaneAction.ESCALATE, LaneAction.TAKE_MESSAGE, LaneAction.END_CALL)


class DecisionAction(str, Enum):
    """Action hint produced by the upstream classifier."""

    RUN_SCENARIO = "RUN_SCENARIO"
    BOOK_APPOINTMENT = "BOOK_APPOINTMENT"
    TRANSFER_CALL = "TRANSFER_CALL"
    ASK_QUESTION = "ASK_QUESTION"
    MESSAGE_ONLY = "MESSAGE_ONLY"
    END_CALL = "END_CALL"
    UNKNOWN = "UNKNOWN"


class Decision(BaseModel):
    """Classifier output for one caller utterance."""

    model_config = ConfigDict(extra="ignore")

    action: DecisionAction = DecisionAction.UNKNOWN
    intent_tag: str | None = None
    entities: dict[str, Any] = Field(default_factory=dict)
    flags: dict[str, bool] = Field(default_factory=dict)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    next_prompt: str | None = None

    def flag(self, name: str) -> bool:
        return bool(self.flags.get(name, False))


DECISION_ACTION_ROUTES: dict[DecisionAction, Route] = {
    DecisionAction.RUN_SCENARIO: Route.SCENARIO_ENGINE,
    DecisionAction.BOOK_APPOINTMENT: Route.BOOKING,
    DecisionAction.TRANSFER_CALL: Route.TRANSFER,
    DecisionAction.ASK_QUESTION: Route.MESSAGE_ONLY,
    DecisionAction.MESSAGE_ONLY: Route.MESSAGE_ONLY,
    DecisionAction.END_CALL: Route.END_CALL,
    DecisionAction.UNKNOWN: Route.SCENARIO_ENGINE,
}


RULE_ACTION_ROUTES: dict[RuleAction, Route] = {
    RuleAction.ROUTE_TO_SCENARIO_ENGINE: Route.SCENARIO_ENGINE,
    RuleAction.START_BOOKING: Route.BOOKING,
    RuleAction.ESCALATE: Route.TRANSFER,
    RuleAction.TAKE_MESSAGE: Route.MESSAGE_ONLY,
    RuleAction.END_CALL: Route.END_CALL,
}


class RoutingRule(BaseModel):
    """A tenant's triage card.

    Matches when every must-have keyword is present and no exclude keyword
    is. Lower priority numbers are evaluated first.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    name: str = ""
    priority: int = DEFAULT_PRIORITY
    must_have_keywords: list[str] = Field(..., min_length=1)
    exclude_keywords: list[str] = Field(default_factory=list)
    action: RuleAction = RuleAction.ROUTE_TO_SCENARIO_ENGINE
    enabled: bool = True
    lane: str | None = Field(default=None, description="Return-lane grouping tag")
    lane_action: LaneAction = Field(
        default=LaneAction.PUSH_BOOKING,
        description="Follow-up nudge once the caller has lingered in this lane",
    )
    return_lane_enabled: bool = True
    scenario_key: str | None = None
    transfer_target: str | None = None

    @property
    def route(self) -> Route:
        return RULE_ACTION_ROUTES[self.action]


class RouteSource(str, Enum):
    """Which stage of the router produced the route."""

    EDGE_CASE = "edge_case"
    TRIAGE_RULE = "triage_rule"
    TRANSFER_RULE = "transfer_rule"
    FALLBACK = "fallback"


class RouteResult(BaseModel):
    """The router's pick for one turn."""

    route: Route
    source: RouteSource
    reason: str
    matched_rule_id: str | None = None
    matched_rule: RoutingRule | None = None
    scripted_response: str | None = None
    transfer_target: str | None = None
    transfer_phone: str | None = None
    transfer_script: str | None = None
    blocked_transfers: list[str] = Field(default_factory=list)
