"""Health check and metrics endpoints."""

from typing import Literal

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from frontdesk import __version__
from frontdesk.api.dependencies import SettingsDep

router = APIRouter()


class HealthResponse(BaseModel):
    """Service health."""

    status: Literal["healthy"]
    version: str
    backend: str


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Liveness check."""
    return HealthResponse(status="healthy", version=__version__, backend=settings.storage.backend)


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
