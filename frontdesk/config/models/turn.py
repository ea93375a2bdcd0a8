"""Turn-handling configuration.

These are global defaults. A tenant may override any section through its
TenantSettings record.
"""

from typing import Literal

from pydantic import BaseModel, Field

LaneActionName = Literal["NONE", "PUSH_BOOKING", "ESCALATE", "TAKE_MESSAGE", "END_CALL"]
SlotName = Literal["name", "phone", "address", "time"]
SpamAction = Literal["polite_dismiss", "silent_hangup", "flag_only"]


class SpamConfig(BaseModel):
    """How detected spam or telemarketing calls are handled."""

    enabled: bool = True
    on_spam: SpamAction = "polite_dismiss"
    dismiss_message: str = "Thank you for calling. Goodbye."
    phrases: list[str] = Field(
        default_factory=lambda: [
            "extended warranty",
            "this is a recorded message",
            "google listing",
            "business loan",
            "lower your rates",
            "press 1",
        ]
    )


class ConfirmationConfig(BaseModel):
    """Which routes must be confirmed by the caller before they execute."""

    enabled: bool = True
    confirm_transfers: bool = True
    confirm_bookings: bool = False
    confirm_emergency: bool = True
    confirm_cancellations: bool = True
    confirm_below_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    emergency_intents: list[str] = Field(default_factory=lambda: ["emergency"])
    cancellation_intents: list[str] = Field(
        default_factory=lambda: ["cancel", "cancellation", "cancel_appointment"]
    )
    transfer_phrase: str = (
        "Before I transfer you, I want to make sure - you'd like to speak "
        "with a live agent, correct?"
    )
    booking_phrase: str = (
        "Just to confirm, you'd like to schedule a service appointment, is that right?"
    )
    emergency_phrase: str = (
        "This sounds like an emergency. I want to make sure - should I "
        "dispatch someone right away?"
    )
    cancellation_phrase: str = "Just to confirm, you'd like to cancel your appointment, correct?"
    low_confidence_phrase: str = (
        "I want to make sure I have this right, you need help with {detected_intent}, correct?"
    )
    clarify_phrase: str = (
        "I apologize for the confusion. Could you tell me more about what you need help with?"
    )
    recovery_slot: SlotName | None = Field(
        default=None,
        description="Booking field re-asked after the caller denies a confirmation",
    )


class ReturnLaneConfig(BaseModel):
    """Counters that nudge long-running conversations toward an outcome."""

    enabled: bool = True
    max_turns_before_push: int = Field(default=2, ge=0)
    force_action_after_turns: int = Field(default=4, ge=1)
    force_action: LaneActionName = "PUSH_BOOKING"
    allow_hard_actions_on_fallback_tier: bool = False
    fallback_tier: int = Field(
        default=3, description="Tier number of the lowest-confidence answers"
    )
    default_lane: str = "general"
    push_phrase: str = "Would you like me to get a technician scheduled for you?"


class BookingPromptsConfig(BaseModel):
    """Prompts used by the booking slot-filler."""

    start: str = "I can get that scheduled for you. May I have your name?"
    ask_name: str = "May I have your name, please?"
    ask_phone: str = "Thanks, {name}. And what's the best phone number to reach you?"
    ask_address: str = "Got it. What's the service address?"
    ask_time: str = "What day and time works best for you?"
    complete: str = (
        "You're all set, {name}! A technician will be out {time}. "
        "You'll receive a confirmation text shortly. Is there anything else I can help with?"
    )
    arrival_window: str = (
        "Our dispatcher will text you a two-hour arrival window before the "
        "technician heads your way."
    )
    confirmed: str = "Yes {name}, your service appointment is confirmed for {time}."
    technician: str = (
        "One of our licensed technicians will be assigned and you'll get their "
        "name in the confirmation text."
    )
    price: str = (
        "The technician will go over pricing with you on site before any work begins."
    )
    anything_else: str = "Is there anything else I can help you with?"
    goodbye: str = "Thank you for calling. Have a great day!"


class RescueConfig(BaseModel):
    """Responses for callers who are frustrated or feel unheard."""

    frustration_triggers: list[str] = Field(
        default_factory=lambda: [
            "frustrated",
            "ridiculous",
            "annoying",
            "this is stupid",
            "waste of time",
            "not helpful",
            "speak to a human",
            "real person",
        ]
    )
    rescue_phrase: str = (
        "I'm sorry, I hear you. Tell me what's going on and I'll make sure we take care of it."
    )
    offer_human_after: int = Field(default=3, ge=1)
    offer_human_phrase: str = (
        "I'm sorry for the trouble. Would you like me to connect you with someone on our team?"
    )


class TurnConfig(BaseModel):
    """Per-turn behavior."""

    fallback_text: str = "I'm here to help. What can I assist you with?"
    transfer_phrase: str = "Let me connect you with someone who can help."
    take_message_phrase: str = (
        "I'd be happy to take a message. What would you like me to pass along?"
    )
    business_hours_start: int = Field(default=7, ge=0, le=23)
    business_hours_end: int = Field(default=19, ge=1, le=24)
    spam: SpamConfig = Field(default_factory=SpamConfig)
    confirmation: ConfirmationConfig = Field(default_factory=ConfirmationConfig)
    return_lane: ReturnLaneConfig = Field(default_factory=ReturnLaneConfig)
    booking: BookingPromptsConfig = Field(default_factory=BookingPromptsConfig)
    rescue: RescueConfig = Field(default_factory=RescueConfig)
