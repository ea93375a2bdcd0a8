"""Tenant routing configuration and compile bookkeeping."""

from frontdesk.tenants.models import CompileLock, CompileMetadata, TenantSettings
from frontdesk.tenants.store import TenantPolicyRepository

__all__ = ["CompileLock", "CompileMetadata", "TenantPolicyRepository", "TenantSettings"]
