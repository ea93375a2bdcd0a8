"""TenantPolicyRepository abstract interface."""

from abc import ABC, abstractmethod
from uuid import UUID

from frontdesk.routing.models import RoutingRule
from frontdesk.tenants.models import CompileLock, CompileMetadata, TenantSettings


class TenantPolicyRepository(ABC):
    """Abstract interface for tenant routing configuration.

    Holds each tenant's triage cards, turn overrides, compile lock and
    last-compile metadata.
    """

    @abstractmethod
    async def get_routing_rules(
        self,
        tenant_id: UUID,
        *,
        enabled_only: bool = True,
    ) -> list[RoutingRule]:
        """Get a tenant's routing rules sorted by (priority, id)."""
        pass

    @abstractmethod
    async def save_routing_rule(self, tenant_id: UUID, rule: RoutingRule) -> str:
        """Create or replace a routing rule, returning its id."""
        pass

    @abstractmethod
    async def delete_routing_rule(self, tenant_id: UUID, rule_id: str) -> bool:
        """Delete a routing rule."""
        pass

    @abstractmethod
    async def get_settings(self, tenant_id: UUID) -> TenantSettings | None:
        """Get a tenant's turn overrides."""
        pass

    @abstractmethod
    async def save_settings(self, settings: TenantSettings) -> None:
        """Save a tenant's turn overrides."""
        pass

    @abstractmethod
    async def acquire_compile_lock(
        self,
        tenant_id: UUID,
        token: str,
        ttl_seconds: int | None = None,
    ) -> bool:
        """Set the compile lock only if it is empty or stale.

        Args:
            tenant_id: Tenant whose policy is being compiled
            token: Opaque token identifying this compile
            ttl_seconds: Age after which the lock may be taken over

        Returns:
            True if this call now holds the lock
        """
        pass

    @abstractmethod
    async def release_compile_lock(self, tenant_id: UUID, token: str) -> bool:
        """Clear the compile lock if ``token`` still holds it."""
        pass

    @abstractmethod
    async def get_compile_lock(self, tenant_id: UUID) -> CompileLock | None:
        """Current lock holder, if any."""
        pass

    @abstractmethod
    async def record_compile(self, tenant_id: UUID, metadata: CompileMetadata) -> None:
        """Record the latest compile on the tenant."""
        pass

    @abstractmethod
    async def get_compile_metadata(self, tenant_id: UUID) -> CompileMetadata | None:
        """Latest recorded compile."""
        pass
