"""Policy compiler configuration."""

from pydantic import BaseModel, Field


class PolicyCompilerConfig(BaseModel):
    """Settings for conflict detection, publication and locking."""

    overlap_threshold: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Jaccard overlap above which same-priority rules conflict",
    )
    min_token_length: int = Field(
        default=3,
        ge=1,
        description="Shortest trigger token considered significant",
    )
    artifact_ttl_seconds: int = Field(
        default=86400,
        gt=0,
        description="Cache lifetime of a published artifact",
    )
    lock_ttl_seconds: int | None = Field(
        default=300,
        gt=0,
        description="Age after which a compile lock is stale; None never expires",
    )
