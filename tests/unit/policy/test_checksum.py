"""Tests for artifact checksums."""

from datetime import timedelta
from uuid import uuid4

from frontdesk.policy.checksum import canonical_payload, compute_checksum
from frontdesk.policy.models import PolicyArtifact, PolicyStatus


def _artifact(**overrides) -> PolicyArtifact:
    fields = {
        "tenant_id": uuid4(),
        "version": 2,
        "status": PolicyStatus.ACTIVE,
        "company_name": "Acme",
        "behavior_flags": frozenset({"ACK_OK", "USE_COMPANY_NAME"}),
        "allowed_action_flags": frozenset({"TRANSFER_BILLING", "TRANSFER_EMERGENCY"}),
    }
    fields.update(overrides)
    return PolicyArtifact(**fields)


class TestChecksum:
    """Checksums are deterministic and content-sensitive."""

    def test_independent_of_set_construction_order(self) -> None:
        """Sets built in different orders hash identically."""
        tenant_id = uuid4()
        first = _artifact(
            tenant_id=tenant_id,
            allowed_action_flags=frozenset(["TRANSFER_BILLING", "TRANSFER_EMERGENCY"]),
        )
        second = _artifact(
            tenant_id=tenant_id,
            allowed_action_flags=frozenset(["TRANSFER_EMERGENCY", "TRANSFER_BILLING"]),
        )
        assert compute_checksum(first) == compute_checksum(second)

    def test_ignores_compiled_at_and_checksum(self) -> None:
        """Volatile fields do not change the hash."""
        artifact = _artifact()
        later = artifact.model_copy(
            update={"compiled_at": artifact.compiled_at + timedelta(hours=1), "checksum": "x"}
        )
        assert compute_checksum(artifact) == compute_checksum(later)

    def test_content_change_changes_hash(self) -> None:
        """Any semantic change yields a new checksum."""
        tenant_id = uuid4()
        assert compute_checksum(_artifact(tenant_id=tenant_id)) != compute_checksum(
            _artifact(tenant_id=tenant_id, company_name="Other Co")
        )

    def test_is_sha256_hex(self) -> None:
        checksum = compute_checksum(_artifact())
        assert len(checksum) == 64
        int(checksum, 16)

    def test_canonical_payload_sorts_sets(self) -> None:
        payload = canonical_payload(_artifact())
        assert payload["behavior_flags"] == ["ACK_OK", "USE_COMPANY_NAME"]
        assert "compiled_at" not in payload
        assert "checksum" not in payload
