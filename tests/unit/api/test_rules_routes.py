"""Unit tests for routing rule and tenant settings endpoints."""

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from frontdesk.tenants.stores.inmemory import InMemoryTenantPolicyRepository


def _rule(rule_id: str = "ac-tuneup", **overrides) -> dict:
    body = {
        "id": rule_id,
        "name": "AC tune-up",
        "priority": 10,
        "must_have_keywords": ["ac", "tuneup"],
        "action": "START_BOOKING",
    }
    body.update(overrides)
    return body


class TestRoutingRules:
    """Tests for /tenants/{tenant_id}/rules."""

    def test_put_then_list(self, client: TestClient, tenant_id: UUID) -> None:
        client.put(f"/tenants/{tenant_id}/rules/b-rule", json=_rule("b-rule", priority=5))
        client.put(f"/tenants/{tenant_id}/rules/a-rule", json=_rule("a-rule", priority=5))
        client.put(f"/tenants/{tenant_id}/rules/first", json=_rule("first", priority=1))

        response = client.get(f"/tenants/{tenant_id}/rules")

        assert response.status_code == 200
        assert [rule["id"] for rule in response.json()] == ["first", "a-rule", "b-rule"]

    def test_disabled_rules_hidden_by_default(self, client: TestClient, tenant_id: UUID) -> None:
        client.put(f"/tenants/{tenant_id}/rules/off", json=_rule("off", enabled=False))

        assert client.get(f"/tenants/{tenant_id}/rules").json() == []
        listed = client.get(f"/tenants/{tenant_id}/rules", params={"include_disabled": True})
        assert [rule["id"] for rule in listed.json()] == ["off"]

    def test_path_id_mismatch_rejected(self, client: TestClient, tenant_id: UUID) -> None:
        response = client.put(f"/tenants/{tenant_id}/rules/other", json=_rule())

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CONFIGURATION_ERROR"

    def test_rule_without_keywords_rejected(self, client: TestClient, tenant_id: UUID) -> None:
        response = client.put(
            f"/tenants/{tenant_id}/rules/ac-tuneup", json=_rule(must_have_keywords=[])
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    @pytest.mark.asyncio
    async def test_delete(
        self,
        client: TestClient,
        repository: InMemoryTenantPolicyRepository,
        tenant_id: UUID,
    ) -> None:
        client.put(f"/tenants/{tenant_id}/rules/ac-tuneup", json=_rule())

        response = client.delete(f"/tenants/{tenant_id}/rules/ac-tuneup")

        assert response.status_code == 204
        assert await repository.get_routing_rules(tenant_id) == []


class TestTenantSettings:
    """Tests for PUT /tenants/{tenant_id}/settings."""

    @pytest.mark.asyncio
    async def test_put_settings(
        self,
        client: TestClient,
        repository: InMemoryTenantPolicyRepository,
        tenant_id: UUID,
    ) -> None:
        body = {"tenant_id": str(tenant_id), "spam": {"on_spam": "silent_hangup"}}

        response = client.put(f"/tenants/{tenant_id}/settings", json=body)

        assert response.status_code == 200
        stored = await repository.get_settings(tenant_id)
        assert stored.spam.on_spam == "silent_hangup"
        assert stored.confirmation is None

    def test_tenant_mismatch_rejected(self, client: TestClient, tenant_id: UUID) -> None:
        response = client.put(
            f"/tenants/{tenant_id}/settings", json={"tenant_id": str(uuid4())}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CONFIGURATION_ERROR"
