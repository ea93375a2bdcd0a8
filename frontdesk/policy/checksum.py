"""Deterministic artifact checksums."""

import hashlib
import json
from typing import Any

from frontdesk.policy.models import PolicyArtifact

# Fields that vary between otherwise identical compiles
_VOLATILE_FIELDS = {"checksum", "compiled_at"}
_SET_FIELDS = ("behavior_flags", "guardrail_flags", "allowed_action_flags")


def canonical_payload(artifact: PolicyArtifact) -> dict[str, Any]:
    """JSON-ready view of an artifact with every unordered field sorted."""
    payload = artifact.model_dump(mode="json", exclude=_VOLATILE_FIELDS)
    for field in _SET_FIELDS:
        payload[field] = sorted(payload[field])
    return payload


def compute_checksum(artifact: PolicyArtifact) -> str:
    """SHA-256 over the canonical JSON of ``artifact``.

    Keys are sorted at every level, so logically identical artifacts hash
    identically regardless of construction order.
    """
    encoded = json.dumps(
        canonical_payload(artifact),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
