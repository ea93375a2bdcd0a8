"""In-memory implementation of TenantPolicyRepository."""

import asyncio
from uuid import UUID

from frontdesk.routing.models import RoutingRule
from frontdesk.tenants.models import CompileLock, CompileMetadata, TenantSettings
from frontdesk.tenants.store import TenantPolicyRepository


class InMemoryTenantPolicyRepository(TenantPolicyRepository):
    """In-memory repository for testing and development.

    The compile lock compare-and-swap is serialized with an asyncio.Lock so
    concurrent compiles in one event loop behave like the Redis variant.
    """

    def __init__(self) -> None:
        self._rules: dict[UUID, dict[str, RoutingRule]] = {}
        self._settings: dict[UUID, TenantSettings] = {}
        self._locks: dict[UUID, CompileLock] = {}
        self._metadata: dict[UUID, CompileMetadata] = {}
        self._guard = asyncio.Lock()

    async def get_routing_rules(
        self,
        tenant_id: UUID,
        *,
        enabled_only: bool = True,
    ) -> list[RoutingRule]:
        rules = self._rules.get(tenant_id, {}).values()
        if enabled_only:
            rules = [rule for rule in rules if rule.enabled]
        return sorted(rules, key=lambda rule: (rule.priority, rule.id))

    async def save_routing_rule(self, tenant_id: UUID, rule: RoutingRule) -> str:
        self._rules.setdefault(tenant_id, {})[rule.id] = rule.model_copy(deep=True)
        return rule.id

    async def delete_routing_rule(self, tenant_id: UUID, rule_id: str) -> bool:
        return self._rules.get(tenant_id, {}).pop(rule_id, None) is not None

    async def get_settings(self, tenant_id: UUID) -> TenantSettings | None:
        return self._settings.get(tenant_id)

    async def save_settings(self, settings: TenantSettings) -> None:
        self._settings[settings.tenant_id] = settings

    async def acquire_compile_lock(
        self,
        tenant_id: UUID,
        token: str,
        ttl_seconds: int | None = None,
    ) -> bool:
        async with self._guard:
            current = self._locks.get(tenant_id)
            if current is not None and not current.is_stale():
                return False
            self._locks[tenant_id] = CompileLock(token=token, ttl_seconds=ttl_seconds)
            return True

    async def release_compile_lock(self, tenant_id: UUID, token: str) -> bool:
        async with self._guard:
            current = self._locks.get(tenant_id)
            if current is None or current.token != token:
                return False
            del self._locks[tenant_id]
            return True

    async def get_compile_lock(self, tenant_id: UUID) -> CompileLock | None:
        return self._locks.get(tenant_id)

    async def record_compile(self, tenant_id: UUID, metadata: CompileMetadata) -> None:
        self._metadata[tenant_id] = metadata

    async def get_compile_metadata(self, tenant_id: UUID) -> CompileMetadata | None:
        return self._metadata.get(tenant_id)

    def clear(self) -> None:
        """Clear all data (test utility)."""
        self._rules.clear()
        self._settings.clear()
        self._locks.clear()
        self._metadata.clear()
