"""Route handlers.

The scenario engine, booking backend, transfer desk and message taking
are external services. TurnHandlers is the seam they plug into;
ScriptedTurnHandlers answers from configuration when nothing else is
wired in.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from pydantic import BaseModel

from frontdesk.config.models.turn import TurnConfig
from frontdesk.conversation.models import CallTurnState
from frontdesk.errors import HandlerError
from frontdesk.observability.logging import get_logger
from frontdesk.routing.models import Decision, RouteResult

logger = get_logger(__name__)

# Answer tiers reported by the scenario engine
TIER_SCRIPTED = 1
TIER_CLASSIFIER = 2
TIER_FALLBACK = 3


class TurnContext(BaseModel):
    """Everything a handler may look at for one turn."""

    tenant_id: UUID
    decision: Decision
    user_input: str
    route_result: RouteResult
    call_state: CallTurnState


class HandlerResponse(BaseModel):
    """A handler's reply."""

    text: str
    tier: int = TIER_SCRIPTED
    transfer_target: str | None = None


class TurnHandlers(ABC):
    """Abstract interface for route handlers.

    Implementations raise HandlerError (or let any exception escape) when
    they cannot answer; the state machine substitutes a fallback.
    """

    @abstractmethod
    async def run_scenario(self, context: TurnContext) -> HandlerResponse:
        """Answer through the scenario engine."""
        pass

    @abstractmethod
    async def transfer(self, context: TurnContext) -> HandlerResponse:
        """Prepare a live transfer."""
        pass

    @abstractmethod
    async def take_message(self, context: TurnContext) -> HandlerResponse:
        """Start or continue message taking."""
        pass

    @abstractmethod
    async def end_call(self, context: TurnContext) -> HandlerResponse:
        """Close the call."""
        pass

    @abstractmethod
    async def submit_booking(self, context: TurnContext, slots: dict[str, str]) -> None:
        """Hand a completed booking to the booking backend."""
        pass


class ScriptedTurnHandlers(TurnHandlers):
    """Handlers that answer from configured phrases."""

    def __init__(self, config: TurnConfig | None = None) -> None:
        self._config = config or TurnConfig()

    async def run_scenario(self, context: TurnContext) -> HandlerResponse:
        if context.route_result.scripted_response:
            return HandlerResponse(text=context.route_result.scripted_response, tier=TIER_SCRIPTED)
        if context.decision.next_prompt:
            return HandlerResponse(text=context.decision.next_prompt, tier=TIER_CLASSIFIER)
        raise HandlerError("no scripted answer or prompt for this turn", route="SCENARIO_ENGINE")

    async def transfer(self, context: TurnContext) -> HandlerResponse:
        result = context.route_result
        return HandlerResponse(
            text=result.transfer_script or self._config.transfer_phrase,
            transfer_target=result.transfer_phone or result.transfer_target,
        )

    async def take_message(self, context: TurnContext) -> HandlerResponse:
        return HandlerResponse(
            text=context.decision.next_prompt or self._config.take_message_phrase,
            tier=TIER_CLASSIFIER if context.decision.next_prompt else TIER_SCRIPTED,
        )

    async def end_call(self, context: TurnContext) -> HandlerResponse:  # noqa: ARG002
        return HandlerResponse(text=self._config.booking.goodbye)

    async def submit_booking(self, context: TurnContext, slots: dict[str, str]) -> None:
        logger.info(
            "booking_submitted",
            tenant_id=str(context.tenant_id),
            call_id=str(context.call_state.call_id),
            fields=sorted(slots),
        )
