"""Routing rule (triage card) management endpoints."""

from uuid import UUID

from fastapi import APIRouter, Response

from frontdesk.api.dependencies import EngineDep
from frontdesk.errors import ConfigurationError
from frontdesk.observability.logging import get_logger
from frontdesk.routing.models import RoutingRule
from frontdesk.tenants.models import TenantSettings

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_id}")


@router.get("/rules", response_model=list[RoutingRule])
async def list_rules(
    tenant_id: UUID,
    engine: EngineDep,
    include_disabled: bool = False,
) -> list[RoutingRule]:
    """List a tenant's routing rules in evaluation order."""
    return await engine.repository.get_routing_rules(tenant_id, enabled_only=not include_disabled)


@router.put("/rules/{rule_id}", response_model=RoutingRule)
async def put_rule(
    tenant_id: UUID,
    rule_id: str,
    rule: RoutingRule,
    engine: EngineDep,
) -> RoutingRule:
    """Create or replace a routing rule."""
    if rule.id != rule_id:
        raise ConfigurationError(f"Rule id {rule.id} does not match path {rule_id}")
    await engine.repository.save_routing_rule(tenant_id, rule)
    logger.info("routing_rule_saved", tenant_id=str(tenant_id), rule_id=rule_id)
    return rule


@router.delete("/rules/{rule_id}", status_code=204)
async def delete_rule(tenant_id: UUID, rule_id: str, engine: EngineDep) -> Response:
    """Delete a routing rule."""
    await engine.repository.delete_routing_rule(tenant_id, rule_id)
    return Response(status_code=204)


@router.put("/settings", response_model=TenantSettings)
async def put_settings(
    tenant_id: UUID,
    settings: TenantSettings,
    engine: EngineDep,
) -> TenantSettings:
    """Replace a tenant's turn overrides."""
    if settings.tenant_id != tenant_id:
        raise ConfigurationError("Settings tenant_id does not match path")
    await engine.repository.save_settings(settings)
    return settings
