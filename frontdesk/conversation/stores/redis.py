"""Redis implementation of CallStateStore.

Key format: {prefix}:{call_id}:state, expiring after the configured idle TTL.
"""

from uuid import UUID

import redis.asyncio as redis
from pydantic import ValidationError

from frontdesk.conversation.models import CallTurnState
from frontdesk.conversation.store import CallStateStore
from frontdesk.errors import DependencyError
from frontdesk.observability.logging import get_logger

logger = get_logger(__name__)


class RedisCallStateStore(CallStateStore):
    """Redis-backed call state store."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "call",
        ttl_seconds: int = 3600,
    ) -> None:
        """Initialize the store.

        Args:
            client: Redis client instance
            key_prefix: Prefix for call state keys
            ttl_seconds: Idle lifetime of a call's state
        """
        self._client = client
        self._prefix = key_prefix
        self._ttl = ttl_seconds

    def _key(self, call_id: UUID) -> str:
        return f"{self._prefix}:{call_id}:state"

    async def get(self, call_id: UUID) -> CallTurnState | None:
        try:
            data = await self._client.get(self._key(call_id))
        except redis.RedisError as e:
            logger.error("call_state_get_error", call_id=str(call_id), error=str(e))
            raise DependencyError(f"Failed to load call state: {e}", cause=e) from e
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode()
        try:
            return CallTurnState.model_validate_json(data)
        except ValidationError as e:
            logger.error("call_state_corrupted", call_id=str(call_id), error=str(e))
            raise DependencyError(f"Corrupted call state: {e}", cause=e) from e

    async def save(self, state: CallTurnState) -> UUID:
        try:
            await self._client.set(self._key(state.call_id), state.model_dump_json(), ex=self._ttl)
        except redis.RedisError as e:
            logger.error("call_state_save_error", call_id=str(state.call_id), error=str(e))
            raise DependencyError(f"Failed to save call state: {e}", cause=e) from e
        return state.call_id

    async def delete(self, call_id: UUID) -> bool:
        try:
            removed = await self._client.delete(self._key(call_id))
        except redis.RedisError as e:
            raise DependencyError(f"Failed to delete call state: {e}", cause=e) from e
        return bool(removed)
