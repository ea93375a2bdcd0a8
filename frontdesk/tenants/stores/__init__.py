"""TenantPolicyRepository implementations."""

from frontdesk.tenants.stores.inmemory import InMemoryTenantPolicyRepository
from frontdesk.tenants.stores.redis import RedisTenantPolicyRepository

__all__ = ["InMemoryTenantPolicyRepository", "RedisTenantPolicyRepository"]
