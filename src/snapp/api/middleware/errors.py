"""
Error-handling middleware — maps snapp errors to RFC 7807 responses.

Request validation failures are the caller's fault (400); everything else
the pipeline raises is a server-side failure (500). The body always carries
the machine-readable ``code``.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from snapp.api.schemas.common import ErrorDetail, ProblemDetail
from snapp.core.errors import ErrorCategory, SnappError, ValidationError
from snapp.core.logging import get_logger

logger = get_logger(__name__)

# ── Error category → HTTP status mapping ─────────────────────────────────

ERROR_CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
}

STATUS_TITLES: dict[int, str] = {
    400: "Bad Request",
    500: "Internal Server Error",
}


def status_for_error(error: SnappError) -> int:
    """Resolve a snapp error to an HTTP status, defaulting to 500."""
    return ERROR_CATEGORY_TO_STATUS.get(error.category, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    code: str = "INTERNAL",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        code=code,
    )
    if errors:
        body.errors = [ErrorDetail(**e) for e in errors]
    return JSONResponse(status_code=status, content=body.model_dump())


async def snapp_error_handler(request: Request, exc: SnappError) -> JSONResponse:
    """Render a :class:`SnappError` as a problem detail."""
    status = status_for_error(exc)
    errors = None
    if isinstance(exc, ValidationError) and exc.field:
        errors = [{"code": exc.code, "message": exc.message, "field": exc.field}]
    if status >= 500:
        logger.error("api.request_failed", path=request.url.path, **exc.to_dict())
    else:
        logger.info("api.request_rejected", path=request.url.path, code=exc.code, field=getattr(exc, "field", None))
    return problem_response(
        status=status,
        title=STATUS_TITLES.get(status, "Error"),
        detail=exc.message,
        instance=str(request.url),
        code=exc.code,
        errors=errors,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies (not JSON, not an object) are a 400 too."""
    return problem_response(
        status=400,
        title="Bad Request",
        detail="Error validating parameters: request body must be a JSON object.",
        instance=str(request.url),
        code="VALIDATION_FAILED",
        errors=[
            {"code": "VALIDATION_FAILED", "message": err.get("msg", ""), "field": ".".join(map(str, err.get("loc", ())))}
            for err in exc.errors()
        ],
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — returns 500 with ProblemDetail."""
    logger.exception("api.unhandled_exception", path=request.url.path, error_type=type(exc).__name__)
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url),
    )
