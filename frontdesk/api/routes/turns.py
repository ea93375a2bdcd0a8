"""Call turn endpoint."""

from uuid import UUID

import structlog
from fastapi import APIRouter

from frontdesk.api.dependencies import EngineDep
from frontdesk.api.models.turns import TurnRequest, TurnResponse
from frontdesk.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_id}/calls/{call_id}")


@router.post("/turns", response_model=TurnResponse)
async def process_turn(
    tenant_id: UUID,
    call_id: UUID,
    request: TurnRequest,
    engine: EngineDep,
) -> TurnResponse:
    """Process one classified caller utterance."""
    structlog.contextvars.bind_contextvars(tenant_id=str(tenant_id), call_id=str(call_id))
    result = await engine.process_turn(tenant_id, call_id, request.decision, request.user_input)
    state = result.call_state
    return TurnResponse(
        text=result.text,
        call_action=result.call_action,
        route=result.route,
        reason=result.reason,
        lane_action=result.lane_action,
        transfer_target=result.transfer_target,
        phase=state.phase,
        booking_locked=state.booking_locked,
        awaiting_confirmation=state.pending_confirmation is not None,
        turn_count=state.turn_count,
        debug=result.debug,
    )
