"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and lifespan
events into a single ``FastAPI`` instance. It is the only place in the
codebase that touches ``FastAPI`` directly.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from snapp.api.deps import get_settings
from snapp.api.middleware.errors import (
    request_validation_handler,
    snapp_error_handler,
    unhandled_exception_handler,
)
from snapp.api.middleware.request_id import RequestIDMiddleware
from snapp.core.errors import SnappError
from snapp.core.logging import configure_logging, get_logger
from snapp.core.settings import SnappSettings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup / shutdown hooks."""
    settings: SnappSettings = app.state.settings
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    log = get_logger("snapp.api")
    log.info("snapp API starting", version=app.version, resources_dir=str(settings.resources_dir))
    if not settings.resources_dir.is_dir():
        log.warning("resources_dir_missing", resources_dir=str(settings.resources_dir))

    yield
    log.info("snapp API shutting down")


def create_app(settings: SnappSettings | None = None) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : SnappSettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    """

    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    # Stash settings on app state for the lifespan and error handlers
    app.state.settings = settings

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware ───────────────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(SnappError, snapp_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from snapp.api.routers import executables, health

    # Health endpoints at root level (no prefix) for container healthchecks
    app.include_router(health.router)
    app.include_router(executables.router, prefix=settings.api_prefix, tags=["executables"])

    return app
