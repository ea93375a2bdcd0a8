"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

BackendType = Literal["inmemory", "redis"]


class StorageConfig(BaseModel):
    """Backends for the artifact cache, tenant repository and call state."""

    backend: BackendType = Field(
        default="inmemory",
        description="Backend used by every store",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    artifact_key_prefix: str = Field(
        default="policy",
        description="Prefix for compiled policy artifact keys",
    )
    tenant_key_prefix: str = Field(
        default="tenant",
        description="Prefix for tenant rule, settings and lock keys",
    )
    call_key_prefix: str = Field(
        default="call",
        description="Prefix for per-call turn state keys",
    )
    call_state_ttl_seconds: int = Field(
        default=3600,
        gt=0,
        description="How long an idle call's state survives",
    )
