"""Tests for caller confirmation."""

import pytest

from frontdesk.config.models.turn import ConfirmationConfig
from frontdesk.conversation.confirmation import ConfirmationGate, ReplyKind, classify_reply
from frontdesk.conversation.models import ConfirmationSeverity
from frontdesk.routing.models import Route, RouteResult, RouteSource
from tests.factories import DecisionFactory


def _route(route: Route, source: RouteSource = RouteSource.FALLBACK) -> RouteResult:
    return RouteResult(route=route, source=source, reason="test")


@pytest.fixture
def gate() -> ConfirmationGate:
    return ConfirmationGate()


class TestClassifyReply:
    """Yes/no reply reading."""

    @pytest.mark.parametrize(
        "text", ["yes", "Yeah please", "that's correct", "sure, go ahead", "you're right"]
    )
    def test_confirm(self, text: str) -> None:
        assert classify_reply(text) == ReplyKind.CONFIRM

    @pytest.mark.parametrize(
        "text", ["no", "Nope", "that's wrong", "not correct", "that's not right"]
    )
    def test_deny(self, text: str) -> None:
        assert classify_reply(text) == ReplyKind.DENY

    @pytest.mark.parametrize(
        "text",
        [
            "maybe",
            "",
            "yes no",
            "what do you mean",
            "I'm not sure",
            "not really",
            "yeah, I don't know",
        ],
    )
    def test_ambiguous(self, text: str) -> None:
        assert classify_reply(text) == ReplyKind.AMBIGUOUS


class TestConfirmationGate:
    """Which routes are held."""

    def test_transfer_is_high(self, gate: ConfirmationGate) -> None:
        pending = gate.evaluate(
            _route(Route.TRANSFER), DecisionFactory.create(), ConfirmationConfig(), turn=3
        )
        assert pending is not None
        assert pending.severity == ConfirmationSeverity.HIGH
        assert pending.action == Route.TRANSFER
        assert pending.asked_at_turn == 3
        assert pending.route_result.route == Route.TRANSFER

    def test_emergency_is_critical(self, gate: ConfirmationGate) -> None:
        pending = gate.evaluate(
            _route(Route.TRANSFER),
            DecisionFactory.create(intent_tag="emergency"),
            ConfirmationConfig(),
        )
        assert pending is not None
        assert pending.severity == ConfirmationSeverity.CRITICAL
        assert pending.question == ConfirmationConfig().emergency_phrase

    def test_emergency_flag_on_booking(self, gate: ConfirmationGate) -> None:
        pending = gate.evaluate(
            _route(Route.BOOKING),
            DecisionFactory.create(flags={"emergency": True}),
            ConfirmationConfig(),
        )
        assert pending is not None
        assert pending.severity == ConfirmationSeverity.CRITICAL

    def test_cancellation_is_medium(self, gate: ConfirmationGate) -> None:
        pending = gate.evaluate(
            _route(Route.MESSAGE_ONLY),
            DecisionFactory.create(intent_tag="cancel_appointment"),
            ConfirmationConfig(),
        )
        assert pending is not None
        assert pending.severity == ConfirmationSeverity.MEDIUM

    def test_bookings_held_only_when_configured(self, gate: ConfirmationGate) -> None:
        decision = DecisionFactory.create()
        assert gate.evaluate(_route(Route.BOOKING), decision, ConfirmationConfig()) is None

        pending = gate.evaluate(
            _route(Route.BOOKING), decision, ConfirmationConfig(confirm_bookings=True)
        )
        assert pending is not None
        assert pending.severity == ConfirmationSeverity.MEDIUM

    def test_low_confidence(self, gate: ConfirmationGate) -> None:
        pending = gate.evaluate(
            _route(Route.MESSAGE_ONLY),
            DecisionFactory.create(intent_tag="duct_cleaning", confidence=0.4),
            ConfirmationConfig(),
        )
        assert pending is not None
        assert pending.severity == ConfirmationSeverity.LOW
        assert "duct cleaning" in pending.question

    def test_low_confidence_scenario_not_held(self, gate: ConfirmationGate) -> None:
        """Scenario answers are never held for low confidence."""
        pending = gate.evaluate(
            _route(Route.SCENARIO_ENGINE),
            DecisionFactory.create(confidence=0.1),
            ConfirmationConfig(),
        )
        assert pending is None

    def test_edge_case_never_held(self, gate: ConfirmationGate) -> None:
        pending = gate.evaluate(
            _route(Route.SCENARIO_ENGINE, RouteSource.EDGE_CASE),
            DecisionFactory.create(intent_tag="emergency", confidence=0.1),
            ConfirmationConfig(),
        )
        assert pending is None

    def test_disabled(self, gate: ConfirmationGate) -> None:
        pending = gate.evaluate(
            _route(Route.TRANSFER), DecisionFactory.create(), ConfirmationConfig(enabled=False)
        )
        assert pending is None
