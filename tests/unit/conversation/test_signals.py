"""Tests for caller-signal detection."""

import pytest

from frontdesk.config.models.turn import RescueConfig, SpamConfig
from frontdesk.conversation.models import TurnPhase
from frontdesk.conversation.signals import (
    UnlockReason,
    detect_unlock,
    is_frustrated,
    is_spam,
)

TRIGGERS = RescueConfig().frustration_triggers


class TestSpamAndFrustration:
    """Phrase-list checks."""

    def test_spam_phrase(self) -> None:
        assert is_spam("Hi, this is about your Google Listing", SpamConfig().phrases)
        assert not is_spam("my furnace is out", SpamConfig().phrases)

    def test_frustration_case_insensitive(self) -> None:
        assert is_frustrated("This is RIDICULOUS", TRIGGERS)
        assert not is_frustrated("thanks so much", TRIGGERS)


class TestDetectUnlock:
    """Booking lock release signals."""

    def test_plain_slot_answer_keeps_lock(self) -> None:
        assert detect_unlock("555 123 4567", TRIGGERS) is None
        assert detect_unlock("", TRIGGERS) is None

    def test_frustrated_while_describing_problem(self) -> None:
        signal = detect_unlock("this is ridiculous, the thermostat is broken", TRIGGERS)
        assert signal is not None
        assert signal.reason == UnlockReason.FRUSTRATED_WITH_PROBLEM_DESCRIPTION
        assert signal.phase == TurnPhase.RESCUE

    def test_refused_slot_then_described_problem(self) -> None:
        signal = detect_unlock("I'd rather not, the AC is making noise", TRIGGERS)
        assert signal is not None
        assert signal.reason == UnlockReason.REFUSED_SLOT_THEN_DESCRIBED_PROBLEM
        assert signal.phase == TurnPhase.TRIAGE

    def test_feels_ignored(self) -> None:
        signal = detect_unlock("you're not listening to me", TRIGGERS)
        assert signal is not None
        assert signal.reason == UnlockReason.CALLER_FEELS_IGNORED
        assert signal.phase == TurnPhase.RESCUE

    @pytest.mark.parametrize(
        "text",
        ["can you fix a heat pump?", "do you know what you're doing", "are you qualified"],
    )
    def test_trust_concern(self, text: str) -> None:
        signal = detect_unlock(text, TRIGGERS)
        assert signal is not None
        assert signal.reason == UnlockReason.TRUST_CONCERN_DETECTED
        assert signal.phase == TurnPhase.TRIAGE
