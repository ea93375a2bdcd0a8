"""Caller confirmation of consequential routes."""

import re
from enum import Enum

from frontdesk.config.models.turn import ConfirmationConfig
from frontdesk.conversation.models import ConfirmationSeverity, PendingConfirmation
from frontdesk.routing.models import Decision, Route, RouteResult, RouteSource

CONFIRM_PATTERN = re.compile(
    r"(?<!not )(?<!n't )\b(yes|yeah|yep|yup|sure|absolutely|affirmative|go ahead|please do"
    r"|correct|right)\b",
    re.IGNORECASE,
)
HESITATION_PATTERN = re.compile(
    r"\b(not sure|not really|unsure|not certain|i don'?t know|dunno|maybe|not yet)\b",
    re.IGNORECASE,
)
DENY_PATTERN = re.compile(
    r"\b(no|nope|nah|wrong|incorrect|not right|not correct)\b",
    re.IGNORECASE,
)


class ReplyKind(str, Enum):
    """How a reply to a confirmation question was read."""

    CONFIRM = "confirm"
    DENY = "deny"
    AMBIGUOUS = "ambiguous"


def classify_reply(text: str) -> ReplyKind:
    """Read a yes/no reply.

    A hesitant reply, or one matching both phrase sets or neither, is
    ambiguous.
    """
    if HESITATION_PATTERN.search(text or ""):
        return ReplyKind.AMBIGUOUS
    confirmed = CONFIRM_PATTERN.search(text or "") is not None
    denied = DENY_PATTERN.search(text or "") is not None
    if confirmed and not denied:
        return ReplyKind.CONFIRM
    if denied and not confirmed:
        return ReplyKind.DENY
    return ReplyKind.AMBIGUOUS


class ConfirmationGate:
    """Decides whether a freshly routed action must be confirmed first."""

    def evaluate(
        self,
        route_result: RouteResult,
        decision: Decision,
        config: ConfirmationConfig,
        turn: int = 0,
    ) -> PendingConfirmation | None:
        """Hold the route for confirmation if policy requires it.

        Args:
            route_result: Router output for this turn
            decision: Classifier output for this turn
            config: Tenant confirmation settings
            turn: Current turn number, recorded on the pending record

        Returns:
            The pending confirmation to store, or None to execute now
        """
        if not config.enabled or route_result.source == RouteSource.EDGE_CASE:
            return None

        route = route_result.route
        intent = (decision.intent_tag or "").lower()

        held: tuple[ConfirmationSeverity, str] | None = None
        is_emergency = intent in {i.lower() for i in config.emergency_intents} or decision.flag(
            "emergency"
        )
        if config.confirm_emergency and is_emergency and route in (Route.TRANSFER, Route.BOOKING):
            held = (ConfirmationSeverity.CRITICAL, config.emergency_phrase)
        elif config.confirm_transfers and route == Route.TRANSFER:
            held = (ConfirmationSeverity.HIGH, config.transfer_phrase)
        elif config.confirm_cancellations and intent in {
            i.lower() for i in config.cancellation_intents
        }:
            held = (ConfirmationSeverity.MEDIUM, config.cancellation_phrase)
        elif config.confirm_bookings and route == Route.BOOKING:
            held = (ConfirmationSeverity.MEDIUM, config.booking_phrase)
        elif (
            route != Route.SCENARIO_ENGINE
            and decision.confidence < config.confirm_below_confidence
        ):
            label = (decision.intent_tag or route.value).replace("_", " ").lower()
            held = (
                ConfirmationSeverity.LOW,
                config.low_confidence_phrase.format(detected_intent=label),
            )

        if held is None:
            return None

        severity, question = held
        return PendingConfirmation(
            action=route,
            severity=severity,
            question=question,
            route_result=route_result,
            asked_at_turn=turn,
        )
