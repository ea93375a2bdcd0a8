"""Policy compile and activation models."""

from datetime import datetime

from pydantic import BaseModel

from frontdesk.policy.models import CompileResult, ConflictRecord, PolicyStatus
from frontdesk.tenants.models import CompileStatus


class CompileResponse(BaseModel):
    """Summary of a compile call."""

    version: int
    status: PolicyStatus
    checksum: str
    cache_key: str
    compiled_at: datetime
    edge_case_count: int
    transfer_rule_count: int
    conflicts: list[ConflictRecord]
    elapsed_ms: float
    published: bool
    activated: bool

    @classmethod
    def from_result(cls, result: CompileResult) -> "CompileResponse":
        artifact = result.artifact
        return cls(
            version=artifact.version,
            status=artifact.status,
            checksum=result.checksum,
            cache_key=result.cache_key,
            compiled_at=artifact.compiled_at,
            edge_case_count=len(artifact.edge_cases),
            transfer_rule_count=len(artifact.transfer_rules),
            conflicts=result.conflicts,
            elapsed_ms=result.elapsed_ms,
            published=result.published,
            activated=result.activated,
        )


class ActivateRequest(BaseModel):
    """Point the active pointer at a published artifact."""

    cache_key: str


class ActivateResponse(BaseModel):
    """Newly active artifact."""

    cache_key: str
    version: int
    checksum: str


class PolicyStatusResponse(BaseModel):
    """Compile lock and last published compile."""

    compile_in_progress: bool
    lock_ttl_seconds: int | None = None
    last_version: int | None = None
    last_checksum: str | None = None
    last_cache_key: str | None = None
    last_compiled_at: datetime | None = None
    active_cache_key: str | None = None

    @classmethod
    def from_status(cls, status: CompileStatus) -> "PolicyStatusResponse":
        last = status.last_compile
        return cls(
            compile_in_progress=status.compile_in_progress,
            lock_ttl_seconds=status.lock_ttl_seconds,
            last_version=last.version if last else None,
            last_checksum=last.checksum if last else None,
            last_cache_key=last.cache_key if last else None,
            last_compiled_at=last.compiled_at if last else None,
            active_cache_key=status.active_cache_key,
        )
