"""CallStateStore implementations."""

from frontdesk.conversation.stores.inmemory import InMemoryCallStateStore
from frontdesk.conversation.stores.redis import RedisCallStateStore

__all__ = ["InMemoryCallStateStore", "RedisCallStateStore"]
