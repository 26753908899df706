"""
Health check endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..deps import AttributeTypeCatalogDep, SessionStoreDep, SettingsDep
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str


@router.get("", response_model=ApiResponse[HealthResponse])
async def health_check(request: Request, settings: SettingsDep):
    """Returns the current status of the service."""
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
        service=settings.app_name,
    ), message="OK")


@router.get("/ready", response_model=ApiResponse[dict])
async def readiness_check(
    request: Request,
    attribute_types: AttributeTypeCatalogDep,
    store: SessionStoreDep,
):
    """Ready once configured visit attribute types have loaded without blocking saves."""
    if attribute_types.is_loading:
        attribute_status = "loading"
    elif attribute_types.blocks_saving:
        attribute_status = "error: required attribute type unavailable"
    else:
        attribute_status = "ok"
    checks = {"attribute_types": attribute_status, "open_sessions": len(store)}
    ready = attribute_status == "ok"
    return ok(request, data={"ready": ready, "checks": checks}, message="READY" if ready else "NOT_READY")
