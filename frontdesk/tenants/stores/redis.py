"""Redis implementation of TenantPolicyRepository.

Key structure:
- {prefix}:{tenant_id}:rules         - hash of rule id -> RoutingRule JSON
- {prefix}:{tenant_id}:settings      - TenantSettings JSON
- {prefix}:{tenant_id}:compile_lock  - lock token (SET NX, optional EX)
- {prefix}:{tenant_id}:compile_meta  - CompileMetadata JSON
"""

from uuid import UUID

import redis.asyncio as redis
from pydantic import ValidationError

from frontdesk.errors import DependencyError
from frontdesk.observability.logging import get_logger
from frontdesk.routing.models import RoutingRule
from frontdesk.tenants.models import CompileLock, CompileMetadata, TenantSettings
from frontdesk.tenants.store import TenantPolicyRepository

logger = get_logger(__name__)

# Delete the lock only if the caller's token still holds it
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def _decode(value: str | bytes | None) -> str | None:
    if isinstance(value, bytes):
        return value.decode()
    return value


class RedisTenantPolicyRepository(TenantPolicyRepository):
    """Redis-backed tenant repository.

    Lock staleness is delegated to Redis key expiry.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "tenant") -> None:
        """Initialize the repository.

        Args:
            client: Redis client instance
            key_prefix: Prefix for all tenant keys
        """
        self._client = client
        self._prefix = key_prefix

    def _key(self, tenant_id: UUID, suffix: str) -> str:
        return f"{self._prefix}:{tenant_id}:{suffix}"

    async def get_routing_rules(
        self,
        tenant_id: UUID,
        *,
        enabled_only: bool = True,
    ) -> list[RoutingRule]:
        try:
            raw = await self._client.hgetall(self._key(tenant_id, "rules"))
        except redis.RedisError as e:
            raise DependencyError(f"Failed to load routing rules: {e}", cause=e) from e

        rules = []
        for field, data in raw.items():
            try:
                rules.append(RoutingRule.model_validate_json(_decode(data)))
            except ValidationError as e:
                logger.warning(
                    "routing_rule_corrupted",
                    tenant_id=str(tenant_id),
                    rule_id=_decode(field),
                    error=str(e),
                )
        if enabled_only:
            rules = [rule for rule in rules if rule.enabled]
        return sorted(rules, key=lambda rule: (rule.priority, rule.id))

    async def save_routing_rule(self, tenant_id: UUID, rule: RoutingRule) -> str:
        try:
            await self._client.hset(self._key(tenant_id, "rules"), rule.id, rule.model_dump_json())
        except redis.RedisError as e:
            raise DependencyError(f"Failed to save routing rule: {e}", cause=e) from e
        logger.debug("routing_rule_saved", tenant_id=str(tenant_id), rule_id=rule.id)
        return rule.id

    async def delete_routing_rule(self, tenant_id: UUID, rule_id: str) -> bool:
        try:
            removed = await self._client.hdel(self._key(tenant_id, "rules"), rule_id)
        except redis.RedisError as e:
            raise DependencyError(f"Failed to delete routing rule: {e}", cause=e) from e
        return bool(removed)

    async def get_settings(self, tenant_id: UUID) -> TenantSettings | None:
        try:
            data = await self._client.get(self._key(tenant_id, "settings"))
        except redis.RedisError as e:
            raise DependencyError(f"Failed to load tenant settings: {e}", cause=e) from e
        if data is None:
            return None
        try:
            return TenantSettings.model_validate_json(_decode(data))
        except ValidationError as e:
            raise DependencyError(f"Corrupted tenant settings: {e}", cause=e) from e

    async def save_settings(self, settings: TenantSettings) -> None:
        try:
            await self._client.set(
                self._key(settings.tenant_id, "settings"), settings.model_dump_json()
            )
        except redis.RedisError as e:
            raise DependencyError(f"Failed to save tenant settings: {e}", cause=e) from e

    async def acquire_compile_lock(
        self,
        tenant_id: UUID,
        token: str,
        ttl_seconds: int | None = None,
    ) -> bool:
        try:
            acquired = await self._client.set(
                self._key(tenant_id, "compile_lock"),
                token,
                nx=True,
                ex=ttl_seconds,
            )
        except redis.RedisError as e:
            raise DependencyError(f"Failed to acquire compile lock: {e}", cause=e) from e
        return bool(acquired)

    async def release_compile_lock(self, tenant_id: UUID, token: str) -> bool:
        try:
            released = await self._client.eval(
                _RELEASE_SCRIPT, 1, self._key(tenant_id, "compile_lock"), token
            )
        except redis.RedisError as e:
            raise DependencyError(f"Failed to release compile lock: {e}", cause=e) from e
        return bool(released)

    async def get_compile_lock(self, tenant_id: UUID) -> CompileLock | None:
        key = self._key(tenant_id, "compile_lock")
        try:
            token = _decode(await self._client.get(key))
            if token is None:
                return None
            ttl = await self._client.ttl(key)
        except redis.RedisError as e:
            raise DependencyError(f"Failed to read compile lock: {e}", cause=e) from e
        return CompileLock(token=token, ttl_seconds=ttl if ttl and ttl > 0 else None)

    async def record_compile(self, tenant_id: UUID, metadata: CompileMetadata) -> None:
        try:
            await self._client.set(self._key(tenant_id, "compile_meta"), metadata.model_dump_json())
        except redis.RedisError as e:
            raise DependencyError(f"Failed to record compile metadata: {e}", cause=e) from e

    async def get_compile_metadata(self, tenant_id: UUID) -> CompileMetadata | None:
        try:
            data = await self._client.get(self._key(tenant_id, "compile_meta"))
        except redis.RedisError as e:
            raise DependencyError(f"Failed to read compile metadata: {e}", cause=e) from e
        if data is None:
            return None
        try:
            return CompileMetadata.model_validate_json(_decode(data))
        except ValidationError as e:
            raise DependencyError(f"Corrupted compile metadata: {e}", cause=e) from e
