"""Booking slot-filling.

Collects name, phone, address and time in order. Each field has its own
extractor; an answer that does not parse is re-asked with the same
prompt. Once every field is filled the call moves to POST_BOOKING, which
answers follow-up questions without touching the collected data.
"""

import re
from collections.abc import Callable

from pydantic import BaseModel

from frontdesk.config.models.turn import BookingPromptsConfig
from frontdesk.conversation.models import SLOT_STEPS, BookingStep, CallTurnState, TurnPhase

# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------

_NAME_INTRO = re.compile(
    r"(?:my name is|my name's|i'm|i am|it's|this is|call me|they call me)\s+"
    r"([a-z]+(?:\s+[a-z]+)?)",
    re.IGNORECASE,
)
_NAME_FILLERS = re.compile(r"^(?:uh|um|er|yeah|yes|sure|ok|okay|so|well)[\s,]+", re.IGNORECASE)
_NOT_NAMES = frozenset({
    "i", "my", "the", "a", "an", "it", "this", "that", "need", "want", "can", "could",
    "calling", "having", "looking", "trying", "not", "just", "here", "so", "very", "really",
})

_STREET_WORDS = re.compile(
    r"\b(street|st|avenue|ave|road|rd|drive|dr|lane|ln|court|ct|boulevard|blvd"
    r"|way|circle|cir|place|pl|parkway|pkwy|highway|hwy)\b",
    re.IGNORECASE,
)
_HOUSE_NUMBER = re.compile(r"\b\d+[a-z]?\s+[a-z]{2,}", re.IGNORECASE)
_ADDRESS_HESITATION = re.compile(
    r"\?|\b(what|why|who|how|huh|hold on|hang on|wait|one sec|minutes?"
    r"|not sure|don'?t know|dunno)\b",
    re.IGNORECASE,
)

_TIME_QUESTION = re.compile(r"\?|do you|why|what|when will|how long|who is", re.IGNORECASE)
_TIME_PATTERNS = (
    re.compile(r"\b(morning|afternoon|evening|tonight|today|tomorrow)\b", re.IGNORECASE),
    re.compile(r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b", re.IGNORECASE),
    re.compile(r"\b\d{1,2}(:\d{2})?\s*(am|pm)\b", re.IGNORECASE),
    re.compile(r"\b(next week|this week|weekend|later today)\b", re.IGNORECASE),
    re.compile(
        r"\b(as soon as possible|as soon as|asap|right away|immediately|urgent|now)\b",
        re.IGNORECASE,
    ),
)


def extract_name(text: str) -> str | None:
    """Pull a caller's name from an introduction or a bare short answer."""
    text = text.strip()
    match = _NAME_INTRO.search(text)
    if match:
        words = match.group(1).split()
        if words[0].lower() not in _NOT_NAMES:
            return " ".join(word.capitalize() for word in words)

    if len(text) >= 30:
        return None
    cleaned = _NAME_FILLERS.sub("", text).strip(" .,!")
    words = cleaned.split()
    if not 1 <= len(words) <= 3 or words[0].lower() in _NOT_NAMES:
        return None
    if not all(word.replace("-", "").replace("'", "").isalpha() for word in words):
        return None
    return " ".join(word.capitalize() for word in words)


def extract_phone(text: str) -> str | None:
    """Return the number as 11 digits with a leading country code."""
    digits = re.sub(r"\D", "", text)
    if len(digits) == 10:
        return f"1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return digits
    return None


def extract_address(text: str) -> str | None:
    """A house number followed by a street name, or a street-type word."""
    text = text.strip(" .,!\t\n")
    if not text or _ADDRESS_HESITATION.search(text):
        return None
    if _HOUSE_NUMBER.search(text) or _STREET_WORDS.search(text):
        return text
    return None


def extract_time(text: str) -> str | None:
    """First time expression in ``text``; questions never count as answers."""
    if _TIME_QUESTION.search(text):
        return None
    for pattern in _TIME_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None


EXTRACTORS: dict[str, Callable[[str], str | None]] = {
    "name": extract_name,
    "phone": extract_phone,
    "address": extract_address,
    "time": extract_time,
}

STEP_FIELDS: dict[BookingStep, str] = {step: field for field, step in SLOT_STEPS}
FIELD_STEPS: dict[str, BookingStep] = {field: step for field, step in SLOT_STEPS}

# ---------------------------------------------------------------------------
# Post-booking follow-ups
# ---------------------------------------------------------------------------

_ASKS_ARRIVAL = re.compile(
    r"\b(what time|when|how long|arrive|arrival|window|eta)\b", re.IGNORECASE
)
_ASKS_CONFIRMED = re.compile(r"\b(confirm|confirmed|booked|scheduled|all set)\b", re.IGNORECASE)
_ASKS_TECHNICIAN = re.compile(r"\b(technician|tech|who is coming|who's coming)\b", re.IGNORECASE)
_ASKS_PRICE = re.compile(r"\b(price|cost|how much|charge|fee)\b", re.IGNORECASE)
_SAYS_GOODBYE = re.compile(
    r"\b(no|nope|that's all|that is all|bye|goodbye|thank|thanks)\b", re.IGNORECASE
)


class SlotFillResult(BaseModel):
    """Reply from one slot-filling turn."""

    text: str
    step: BookingStep
    filled_field: str | None = None
    booking_completed: bool = False
    call_finished: bool = False


class BookingSlotFiller:
    """Drives the booking flow on a CallTurnState.

    Methods mutate ``state`` in place.
    """

    def __init__(self, prompts: BookingPromptsConfig | None = None) -> None:
        self._prompts = prompts or BookingPromptsConfig()

    @staticmethod
    def next_step(slots: dict[str, str]) -> BookingStep:
        """First field still missing, or POST_BOOKING when all are filled."""
        for field, step in SLOT_STEPS:
            if not slots.get(field):
                return step
        return BookingStep.POST_BOOKING

    def prompt_for(self, step: BookingStep, slots: dict[str, str]) -> str:
        name = slots.get("name") or "there"
        prompts = {
            BookingStep.ASK_NAME: self._prompts.ask_name,
            BookingStep.ASK_PHONE: self._prompts.ask_phone.format(name=name),
            BookingStep.ASK_ADDRESS: self._prompts.ask_address,
            BookingStep.ASK_TIME: self._prompts.ask_time,
        }
        return prompts.get(step, self._prompts.anything_else)

    def start(self, state: CallTurnState, prefill: dict[str, str] | None = None) -> SlotFillResult:
        """Enter the booking flow.

        Args:
            state: Call state to lock into booking
            prefill: Fields already known from the classifier; a value its
                field's extractor rejects is left to be asked for

        Returns:
            Prompt for the first missing field, or the completion message
            if nothing is missing
        """
        for field, value in (prefill or {}).items():
            extractor = EXTRACTORS.get(field)
            if extractor is None or not value or state.collected_slots.get(field):
                continue
            parsed = extractor(str(value))
            if parsed is not None:
                state.collected_slots[field] = parsed

        state.booking_locked = True
        state.phase = TurnPhase.BOOKING
        step = self.next_step(state.collected_slots)
        if step == BookingStep.POST_BOOKING:
            return self._complete(state)

        state.booking_step = step
        if step == BookingStep.ASK_NAME:
            return SlotFillResult(text=self._prompts.start, step=step)
        return SlotFillResult(text=self.prompt_for(step, state.collected_slots), step=step)

    def fill(self, state: CallTurnState, text: str) -> SlotFillResult:
        """Consume one caller answer."""
        step = state.booking_step
        if step in (BookingStep.POST_BOOKING, BookingStep.COMPLETE):
            return self.answer_follow_up(state, text)

        field = STEP_FIELDS[step]
        value = EXTRACTORS[field](text or "")
        if value is None:
            return SlotFillResult(text=self.prompt_for(step, state.collected_slots), step=step)

        state.collected_slots[field] = value
        next_step = self.next_step(state.collected_slots)
        if next_step == BookingStep.POST_BOOKING:
            result = self._complete(state)
            result.filled_field = field
            return result

        state.booking_step = next_step
        return SlotFillResult(
            text=self.prompt_for(next_step, state.collected_slots),
            step=next_step,
            filled_field=field,
        )

    def answer_follow_up(self, state: CallTurnState, text: str) -> SlotFillResult:
        """Answer a question after the booking is made."""
        slots = state.collected_slots
        name = slots.get("name", "")
        time = slots.get("time", "")
        step = BookingStep.POST_BOOKING

        if _ASKS_ARRIVAL.search(text):
            reply = f"{self._prompts.arrival_window} {self._prompts.anything_else}"
        elif _ASKS_CONFIRMED.search(text):
            reply = self._prompts.confirmed.format(name=name, time=time)
        elif _ASKS_TECHNICIAN.search(text):
            reply = self._prompts.technician
        elif _ASKS_PRICE.search(text):
            reply = self._prompts.price
        elif _SAYS_GOODBYE.search(text):
            state.booking_step = BookingStep.COMPLETE
            state.booking_locked = False
            state.phase = TurnPhase.COMPLETE
            return SlotFillResult(
                text=self._prompts.goodbye, step=BookingStep.COMPLETE, call_finished=True
            )
        else:
            reply = self._prompts.anything_else

        return SlotFillResult(text=reply, step=step)

    def _complete(self, state: CallTurnState) -> SlotFillResult:
        state.booking_step = BookingStep.POST_BOOKING
        state.phase = TurnPhase.POST_BOOKING
        text = self._prompts.complete.format(
            name=state.collected_slots.get("name", ""),
            time=state.collected_slots.get("time", ""),
        )
        return SlotFillResult(text=text, step=BookingStep.POST_BOOKING, booking_completed=True)
