"""Tenant configuration records."""

from datetime import datetime, timedelta
from uuid import UUID

from pydantic import BaseModel, Field

from frontdesk.config.models.turn import (
    ConfirmationConfig,
    RescueConfig,
    ReturnLaneConfig,
    SpamConfig,
)
from frontdesk.policy.models import utc_now


class CompileLock(BaseModel):
    """Single-slot token marking a compile in progress."""

    token: str
    acquired_at: datetime = Field(default_factory=utc_now)
    ttl_seconds: int | None = None

    def is_stale(self, now: datetime | None = None) -> bool:
        """Whether the lock has outlived its TTL. Locks without a TTL never go stale."""
        if self.ttl_seconds is None:
            return False
        now = now or utc_now()
        return now - self.acquired_at >= timedelta(seconds=self.ttl_seconds)


class CompileMetadata(BaseModel):
    """Last successful compile, recorded on the tenant."""

    version: int
    checksum: str
    cache_key: str
    compiled_at: datetime = Field(default_factory=utc_now)


class CompileStatus(BaseModel):
    """Compile activity for one tenant."""

    tenant_id: UUID
    compile_in_progress: bool = False
    lock_ttl_seconds: int | None = None
    last_compile: CompileMetadata | None = None
    active_cache_key: str | None = None


class TenantSettings(BaseModel):
    """Per-tenant overrides of the global turn configuration.

    A section left as None falls back to the global default.
    """

    tenant_id: UUID
    spam: SpamConfig | None = None
    confirmation: ConfirmationConfig | None = None
    return_lane: ReturnLaneConfig | None = None
    rescue: RescueConfig | None = None
