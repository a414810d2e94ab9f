"""
Common API schemas — RFC 7807 errors and the health payload.

Successful packaging responses are raw ``application/zip`` streams, so the
only JSON envelopes are errors and health.

Error Codes:
    - ``INVALID_FILENAME`` / ``INVALID_PROJECT`` / ``INVALID_OS`` /
      ``INVALID_RESOLUTION`` / ``INVALID_USE_COMPLETE_SNAP`` (400)
    - ``XML_VALIDATION_ERROR`` / ``XML_PROPERTY_MISSING`` (400)
    - ``RESOURCE_READ_FAILED`` / ``STREAM_FAILED`` / ``INTERNAL`` (500)
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Structured error detail for field-level errors."""

    code: str = Field(description="Machine-readable error code (e.g., 'INVALID_OS')")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Request field the error refers to")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Example:
        {
            "type": "about:blank",
            "title": "Bad Request",
            "status": 400,
            "detail": "Error validating parameters: resolution must be a non-empty string.",
            "instance": "http://testserver/api/v1/executables",
            "code": "INVALID_RESOLUTION",
            "errors": [{"code": "INVALID_RESOLUTION", "message": "...", "field": "resolution"}]
        }
    """

    type: str = Field(default="about:blank", description="Error type URI (usually 'about:blank')")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code (e.g., 400, 500)")
    detail: str = Field(default="", description="Human-readable explanation of the error")
    instance: str = Field(default="", description="URI of the failing request")
    code: str = Field(default="INTERNAL", description="Machine-readable error code")
    errors: list[ErrorDetail] = Field(
        default_factory=list,
        description="List of field-level error details",
    )


class HealthResponse(BaseModel):
    """Liveness payload for ``GET /health``."""

    status: str = Field(default="ok")
    service: str = Field(default="snapp-builder")
    version: str
    resources_available: bool = Field(description="Whether the resource store directory exists")
