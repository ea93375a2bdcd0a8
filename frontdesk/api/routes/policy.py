"""Policy compile and activation endpoints."""

from uuid import UUID

import structlog
from fastapi import APIRouter

from frontdesk.api.dependencies import EngineDep
from frontdesk.api.models.policy import (
    ActivateRequest,
    ActivateResponse,
    CompileResponse,
    PolicyStatusResponse,
)
from frontdesk.observability.logging import get_logger
from frontdesk.policy.models import RawPolicy

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants/{tenant_id}/policy")


@router.post("/compile", response_model=CompileResponse)
async def compile_policy(
    tenant_id: UUID,
    raw_policy: RawPolicy,
    engine: EngineDep,
) -> CompileResponse:
    """Compile and publish a tenant's policy.

    Returns 409 COMPILE_IN_PROGRESS if another compile holds the lock.
    """
    structlog.contextvars.bind_contextvars(tenant_id=str(tenant_id))
    result = await engine.compile_policy(tenant_id, raw_policy)
    return CompileResponse.from_result(result)


@router.post("/activate", response_model=ActivateResponse)
async def activate_policy(
    tenant_id: UUID,
    request: ActivateRequest,
    engine: EngineDep,
) -> ActivateResponse:
    """Make a previously published artifact the active one."""
    structlog.contextvars.bind_contextvars(tenant_id=str(tenant_id))
    artifact = await engine.activate_policy(tenant_id, request.cache_key)
    return ActivateResponse(
        cache_key=request.cache_key,
        version=artifact.version,
        checksum=artifact.checksum,
    )


@router.get("/status", response_model=PolicyStatusResponse)
async def policy_status(tenant_id: UUID, engine: EngineDep) -> PolicyStatusResponse:
    """Whether a compile is running, and the last one recorded."""
    structlog.contextvars.bind_contextvars(tenant_id=str(tenant_id))
    status = await engine.policy_status(tenant_id)
    return PolicyStatusResponse.from_status(status)
