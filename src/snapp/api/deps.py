"""
FastAPI dependency injection — settings and the executable service.

Usage in routers::

    from snapp.api.deps import Service

    @router.post("/executables")
    async def create_executable(body: ExecutableBody, service: Service):
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from snapp.core.settings import SnappSettings
from snapp.core.settings import get_settings as _cached_settings
from snapp.packaging.service import ExecutableService

# ── Settings (singleton) ─────────────────────────────────────────────────


def get_settings() -> SnappSettings:
    """Cached settings — overridden by ``create_app(settings=...)``."""
    return _cached_settings()


# ── Executable service (per app) ─────────────────────────────────────────


def get_executable_service(
    request: Request,
    settings: Annotated[SnappSettings, Depends(get_settings)],
) -> ExecutableService:
    """The app-wide :class:`ExecutableService`, built on first use."""
    service = getattr(request.app.state, "executable_service", None)
    if service is None or service.settings is not settings:
        service = ExecutableService.from_settings(settings)
        request.app.state.executable_service = service
    return service


def get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[SnappSettings, Depends(get_settings)]
Service = Annotated[ExecutableService, Depends(get_executable_service)]
RequestId = Annotated[str | None, Depends(get_request_id)]
