"""Unit tests for ScriptedTurnHandlers."""

from uuid import uuid4

import pytest

from frontdesk.config.models.turn import TurnConfig
from frontdesk.conversation.handlers import (
    TIER_CLASSIFIER,
    TIER_SCRIPTED,
    ScriptedTurnHandlers,
    TurnContext,
)
from frontdesk.errors import HandlerError
from frontdesk.routing.models import Route, RouteResult, RouteSource
from tests.factories import CallStateFactory, DecisionFactory


def _context(
    *, scripted_response: str | None = None, next_prompt: str | None = None
) -> TurnContext:
    tenant_id = uuid4()
    return TurnContext(
        tenant_id=tenant_id,
        decision=DecisionFactory.create(next_prompt=next_prompt),
        user_input="how does a heat pump work",
        route_result=RouteResult(
            route=Route.SCENARIO_ENGINE,
            source=RouteSource.FALLBACK,
            reason="no_match",
            scripted_response=scripted_response,
        ),
        call_state=CallStateFactory.create(tenant_id=tenant_id),
    )


class TestRunScenario:
    """Scripted scenario answers."""

    @pytest.mark.asyncio
    async def test_scripted_response_wins(self) -> None:
        response = await ScriptedTurnHandlers().run_scenario(
            _context(scripted_response="We're open 7am to 7pm.", next_prompt="Anything else?")
        )
        assert response.text == "We're open 7am to 7pm."
        assert response.tier == TIER_SCRIPTED

    @pytest.mark.asyncio
    async def test_classifier_prompt_used(self) -> None:
        response = await ScriptedTurnHandlers().run_scenario(
            _context(next_prompt="What seems to be the problem?")
        )
        assert response.text == "What seems to be the problem?"
        assert response.tier == TIER_CLASSIFIER

    @pytest.mark.asyncio
    async def test_nothing_to_say_raises(self) -> None:
        with pytest.raises(HandlerError) as exc_info:
            await ScriptedTurnHandlers(TurnConfig()).run_scenario(_context())
        assert exc_info.value.route == "SCENARIO_ENGINE"
