"""Caller-signal detection on raw utterances.

Covers spam phrasing, frustration, and the signals that release a
booking lock.
"""

import re
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel

from frontdesk.conversation.models import TurnPhase

TRUST_CONCERN = re.compile(
    r"can you (do|handle|fix)|are you able|know what you'?re doing|qualified"
    r"|sure you can|is this going to work|you guys any good",
    re.IGNORECASE,
)
FEELS_IGNORED = re.compile(
    r"you'?re not listen|didn'?t listen|you didn'?t (hear|understand|acknowledge|sympathize)"
    r"|you'?re ignoring|you don'?t get it|that'?s not what i (said|meant)|you missed"
    r"|you'?re not getting",
    re.IGNORECASE,
)
REFUSED_SLOT = re.compile(
    r"i don'?t (want to|wanna)|not going to (give|tell)|don'?t want to share"
    r"|not comfortable|rather not",
    re.IGNORECASE,
)
DESCRIBING_PROBLEM = re.compile(
    r"water (leak|dripping)|thermostat|not cool|no cool|won'?t (turn|start)"
    r"|making (noise|sound)|smell|broken|not working|problem is|issue is"
    r"|been here before|came out|was here|technician.*before",
    re.IGNORECASE,
)


class UnlockReason(str, Enum):
    """Why a booking lock was released."""

    FRUSTRATED_WITH_PROBLEM_DESCRIPTION = "FRUSTRATED_WITH_PROBLEM_DESCRIPTION"
    REFUSED_SLOT_THEN_DESCRIBED_PROBLEM = "REFUSED_SLOT_THEN_DESCRIBED_PROBLEM"
    CALLER_FEELS_IGNORED = "CALLER_FEELS_IGNORED"
    TRUST_CONCERN_DETECTED = "TRUST_CONCERN_DETECTED"


class UnlockSignal(BaseModel):
    """A detected reason to leave the booking flow, and where to go."""

    reason: UnlockReason
    phase: TurnPhase


def contains_any(text: str, phrases: Iterable[str]) -> bool:
    """Case-insensitive substring check against a phrase list."""
    lowered = text.lower()
    return any(phrase.lower() in lowered for phrase in phrases if phrase)


def is_frustrated(text: str, triggers: Iterable[str]) -> bool:
    return contains_any(text, triggers)


def is_spam(text: str, phrases: Iterable[str]) -> bool:
    return contains_any(text, phrases)


def detect_unlock(text: str, frustration_triggers: Iterable[str]) -> UnlockSignal | None:
    """Check whether the caller's words should release a booking lock.

    Args:
        text: Raw caller utterance
        frustration_triggers: Phrases that indicate frustration

    Returns:
        The first matching signal, or None to stay in the booking flow
    """
    if not text:
        return None

    frustrated = is_frustrated(text, frustration_triggers)
    ignored = FEELS_IGNORED.search(text) is not None
    describing = DESCRIBING_PROBLEM.search(text) is not None

    reason: UnlockReason | None = None
    if (frustrated or ignored) and describing:
        reason = UnlockReason.FRUSTRATED_WITH_PROBLEM_DESCRIPTION
    elif REFUSED_SLOT.search(text) and describing:
        reason = UnlockReason.REFUSED_SLOT_THEN_DESCRIBED_PROBLEM
    elif ignored:
        reason = UnlockReason.CALLER_FEELS_IGNORED
    elif TRUST_CONCERN.search(text):
        reason = UnlockReason.TRUST_CONCERN_DETECTED

    if reason is None:
        return None
    phase = TurnPhase.RESCUE if (frustrated or ignored) else TurnPhase.TRIAGE
    return UnlockSignal(reason=reason, phase=phase)
