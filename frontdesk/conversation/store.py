"""CallStateStore abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from frontdesk.conversation.models import CallTurnState


class CallStateStore(ABC):
    """Abstract interface for per-call turn state.

    State only needs to survive between the turns of a live call.
    """

    @abstractmethod
    async def get(self, call_id: UUID) -> CallTurnState | None:
        """Get a call's state by ID."""
        pass

    @abstractmethod
    async def save(self, state: CallTurnState) -> UUID:
        """Save a call's state, returning the call ID."""
        pass

    @abstractmethod
    async def delete(self, call_id: UUID) -> bool:
        """Discard a call's state."""
        pass
