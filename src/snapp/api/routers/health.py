"""Health router — liveness for container healthchecks.

Mounted at the root (no API prefix)::

    GET /health        status, version, resource store presence
    GET /health/live   always 200
"""

from __future__ import annotations

from fastapi import APIRouter

from snapp import __version__
from snapp.api.deps import Settings
from snapp.api.schemas.common import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health(settings: Settings) -> HealthResponse:
    return HealthResponse(version=__version__, resources_available=settings.resources_dir.is_dir())


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "ok"}
