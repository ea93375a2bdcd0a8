"""Unit tests for InMemoryTenantPolicyRepository."""

import asyncio
from datetime import timedelta
from uuid import UUID

import pytest

from frontdesk.config.models.turn import SpamConfig
from frontdesk.tenants.models import CompileLock, CompileMetadata, TenantSettings
from frontdesk.tenants.stores.inmemory import InMemoryTenantPolicyRepository
from tests.factories import RoutingRuleFactory


class TestRoutingRules:
    """Rule storage."""

    @pytest.mark.asyncio
    async def test_rules_sorted_and_filtered(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        await repository.save_routing_rule(tenant_id, RoutingRuleFactory.create(id="b", priority=5))
        await repository.save_routing_rule(tenant_id, RoutingRuleFactory.create(id="a", priority=5))
        await repository.save_routing_rule(tenant_id, RoutingRuleFactory.create(id="c", priority=1))
        await repository.save_routing_rule(
            tenant_id, RoutingRuleFactory.create(id="off", enabled=False)
        )

        enabled = await repository.get_routing_rules(tenant_id)
        everything = await repository.get_routing_rules(tenant_id, enabled_only=False)

        assert [rule.id for rule in enabled] == ["c", "a", "b"]
        assert len(everything) == 4

    @pytest.mark.asyncio
    async def test_rules_scoped_by_tenant(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        await repository.save_routing_rule(tenant_id, RoutingRuleFactory.create())
        assert await repository.get_routing_rules(UUID(int=tenant_id.int ^ 1)) == []

    @pytest.mark.asyncio
    async def test_delete_rule(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        await repository.save_routing_rule(tenant_id, RoutingRuleFactory.create())
        assert await repository.delete_routing_rule(tenant_id, "ac-tuneup") is True
        assert await repository.delete_routing_rule(tenant_id, "ac-tuneup") is False


class TestSettings:
    """Tenant overrides."""

    @pytest.mark.asyncio
    async def test_save_and_get(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        assert await repository.get_settings(tenant_id) is None
        settings = TenantSettings(tenant_id=tenant_id, spam=SpamConfig(on_spam="flag_only"))
        await repository.save_settings(settings)
        loaded = await repository.get_settings(tenant_id)
        assert loaded is not None
        assert loaded.spam is not None
        assert loaded.spam.on_spam == "flag_only"


class TestCompileLock:
    """Compare-and-swap compile lock."""

    @pytest.mark.asyncio
    async def test_only_one_holder(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        assert await repository.acquire_compile_lock(tenant_id, "first") is True
        assert await repository.acquire_compile_lock(tenant_id, "second") is False
        lock = await repository.get_compile_lock(tenant_id)
        assert lock is not None
        assert lock.token == "first"

    @pytest.mark.asyncio
    async def test_concurrent_acquire(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        """Exactly one of many simultaneous callers wins."""
        results = await asyncio.gather(
            *(repository.acquire_compile_lock(tenant_id, f"t{i}") for i in range(10))
        )
        assert sum(results) == 1

    @pytest.mark.asyncio
    async def test_release_requires_matching_token(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        await repository.acquire_compile_lock(tenant_id, "mine")
        assert await repository.release_compile_lock(tenant_id, "theirs") is False
        assert await repository.release_compile_lock(tenant_id, "mine") is True
        assert await repository.get_compile_lock(tenant_id) is None

    @pytest.mark.asyncio
    async def test_stale_lock_taken_over(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        """A lock past its TTL no longer blocks compiles."""
        await repository.acquire_compile_lock(tenant_id, "crashed", ttl_seconds=60)
        lock = await repository.get_compile_lock(tenant_id)
        assert lock is not None
        repository._locks[tenant_id] = lock.model_copy(
            update={"acquired_at": lock.acquired_at - timedelta(seconds=61)}
        )

        assert await repository.acquire_compile_lock(tenant_id, "fresh", ttl_seconds=60) is True

    @pytest.mark.asyncio
    async def test_lock_without_ttl_never_stale(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        await repository.acquire_compile_lock(tenant_id, "forever")
        lock = await repository.get_compile_lock(tenant_id)
        assert lock is not None
        assert lock.is_stale(lock.acquired_at + timedelta(days=365)) is False


class TestCompileLockModel:
    """CompileLock staleness."""

    def test_is_stale(self) -> None:
        lock = CompileLock(token="t", ttl_seconds=30)
        assert lock.is_stale(lock.acquired_at + timedelta(seconds=29)) is False
        assert lock.is_stale(lock.acquired_at + timedelta(seconds=30)) is True


class TestCompileMetadata:
    """Last-compile metadata."""

    @pytest.mark.asyncio
    async def test_record_and_clear(
        self, repository: InMemoryTenantPolicyRepository, tenant_id: UUID
    ) -> None:
        metadata = CompileMetadata(version=2, checksum="abc", cache_key="policy:x")
        await repository.record_compile(tenant_id, metadata)
        assert await repository.get_compile_metadata(tenant_id) == metadata

        repository.clear()
        assert await repository.get_compile_metadata(tenant_id) is None
