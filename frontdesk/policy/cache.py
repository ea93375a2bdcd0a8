"""Compiled artifact cache.

Artifacts are stored under a content-addressed key and published by
moving a per-tenant active pointer. Readers always dereference the
pointer, so they see either the old artifact or the new one.

Key format:
    {prefix}:{tenant_id}:v{version}:{checksum}  - artifact JSON
    {prefix}:{tenant_id}:active                 - key of the active artifact
"""

from abc import ABC, abstractmethod
from uuid import UUID

import redis.asyncio as redis
from pydantic import ValidationError

from frontdesk.errors import DependencyError
from frontdesk.observability.logging import get_logger
from frontdesk.policy.models import PolicyArtifact

logger = get_logger(__name__)

DEFAULT_KEY_PREFIX = "policy"


def artifact_key(
    tenant_id: UUID,
    version: int,
    checksum: str,
    prefix: str = DEFAULT_KEY_PREFIX,
) -> str:
    """Cache key for one compiled artifact."""
    return f"{prefix}:{tenant_id}:v{version}:{checksum}"


def active_pointer_key(tenant_id: UUID, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """Cache key holding the key of the tenant's active artifact."""
    return f"{prefix}:{tenant_id}:active"


class ArtifactCache(ABC):
    """Abstract interface for compiled artifact storage."""

    key_prefix: str = DEFAULT_KEY_PREFIX

    def key_for(self, artifact: PolicyArtifact) -> str:
        """Cache key for ``artifact``."""
        return artifact_key(
            artifact.tenant_id, artifact.version, artifact.checksum, self.key_prefix
        )

    @abstractmethod
    async def put(self, key: str, artifact: PolicyArtifact, ttl_seconds: int) -> None:
        """Store an artifact under ``key`` with a TTL."""
        pass

    @abstractmethod
    async def get(self, key: str) -> PolicyArtifact | None:
        """Load an artifact by key, rebuilding its patterns."""
        pass

    @abstractmethod
    async def set_active(self, tenant_id: UUID, key: str, ttl_seconds: int) -> None:
        """Point the tenant's active pointer at ``key``."""
        pass

    @abstractmethod
    async def get_active_key(self, tenant_id: UUID) -> str | None:
        """Key the tenant's active pointer currently holds."""
        pass

    async def get_active(self, tenant_id: UUID) -> PolicyArtifact | None:
        """Dereference the active pointer.

        Returns:
            The active artifact, or None if nothing is active or the
            pointed-to artifact has expired
        """
        key = await self.get_active_key(tenant_id)
        if key is None:
            return None
        artifact = await self.get(key)
        if artifact is None:
            logger.warning("active_artifact_missing", tenant_id=str(tenant_id), cache_key=key)
        return artifact


class RedisArtifactCache(ArtifactCache):
    """Redis-backed artifact cache."""

    def __init__(self, client: redis.Redis, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        """Initialize the cache.

        Args:
            client: Redis client instance
            key_prefix: Prefix for all artifact keys
        """
        self._client = client
        self.key_prefix = key_prefix

    async def put(self, key: str, artifact: PolicyArtifact, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, artifact.model_dump_json(), ex=ttl_seconds)
        except redis.RedisError as e:
            raise DependencyError(f"Failed to write artifact {key}: {e}", cause=e) from e
        logger.debug("artifact_cached", cache_key=key, ttl=ttl_seconds)

    async def get(self, key: str) -> PolicyArtifact | None:
        try:
            data = await self._client.get(key)
        except redis.RedisError as e:
            raise DependencyError(f"Failed to read artifact {key}: {e}", cause=e) from e

        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode()
        try:
            return PolicyArtifact.model_validate_json(data)
        except ValidationError as e:
            logger.warning("artifact_corrupted", cache_key=key, error=str(e))
            return None

    async def set_active(self, tenant_id: UUID, key: str, ttl_seconds: int) -> None:
        pointer = active_pointer_key(tenant_id, self.key_prefix)
        try:
            await self._client.set(pointer, key, ex=ttl_seconds)
        except redis.RedisError as e:
            raise DependencyError(f"Failed to set active pointer {pointer}: {e}", cause=e) from e
        logger.info("artifact_activated", tenant_id=str(tenant_id), cache_key=key)

    async def get_active_key(self, tenant_id: UUID) -> str | None:
        pointer = active_pointer_key(tenant_id, self.key_prefix)
        try:
            value = await self._client.get(pointer)
        except redis.RedisError as e:
            raise DependencyError(f"Failed to read active pointer {pointer}: {e}", cause=e) from e
        if isinstance(value, bytes):
            value = value.decode()
        return value


class InMemoryArtifactCache(ArtifactCache):
    """In-memory artifact cache for testing and single-process use.

    TTLs are recorded but not enforced.
    """

    def __init__(self, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self.key_prefix = key_prefix
        self._artifacts: dict[str, str] = {}
        self._pointers: dict[UUID, str] = {}
        self.ttls: dict[str, int] = {}

    async def put(self, key: str, artifact: PolicyArtifact, ttl_seconds: int) -> None:
        self._artifacts[key] = artifact.model_dump_json()
        self.ttls[key] = ttl_seconds

    async def get(self, key: str) -> PolicyArtifact | None:
        data = self._artifacts.get(key)
        if data is None:
            return None
        return PolicyArtifact.model_validate_json(data)

    async def set_active(self, tenant_id: UUID, key: str, ttl_seconds: int) -> None:
        self._pointers[tenant_id] = key
        self.ttls[active_pointer_key(tenant_id, self.key_prefix)] = ttl_seconds

    async def get_active_key(self, tenant_id: UUID) -> str | None:
        return self._pointers.get(tenant_id)

    def clear(self) -> None:
        """Clear all entries (test utility)."""
        self._artifacts.clear()
        self._pointers.clear()
        self.ttls.clear()
