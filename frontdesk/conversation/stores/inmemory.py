"""In-memory implementation of CallStateStore."""

from uuid import UUID

from frontdesk.conversation.models import CallTurnState
from frontdesk.conversation.store import CallStateStore


class InMemoryCallStateStore(CallStateStore):
    """In-memory call state store for testing and development."""

    def __init__(self) -> None:
        self._states: dict[UUID, CallTurnState] = {}

    async def get(self, call_id: UUID) -> CallTurnState | None:
        state = self._states.get(call_id)
        return state.model_copy(deep=True) if state else None

    async def save(self, state: CallTurnState) -> UUID:
        self._states[state.call_id] = state.model_copy(deep=True)
        return state.call_id

    async def delete(self, call_id: UUID) -> bool:
        return self._states.pop(call_id, None) is not None

    def clear(self) -> None:
        """Clear all data (test utility)."""
        self._states.clear()
