"""
Executables router — package a project into a downloadable archive.

Endpoints:
    POST   /executables    Build and stream ``<filename>.zip``

The body keeps the camelCase ``useCompleteSnap`` transport name. Fields are
untyped here: type and format checks belong to
:mod:`snapp.packaging.validation`, which reports them with the packaging
error codes instead of a generic 422.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from snapp.api.deps import RequestId, Service
from snapp.api.schemas.common import ProblemDetail
from snapp.packaging.models import ExecutablePackage
from snapp.packaging.orchestrator import PackagingRun

router = APIRouter(prefix="/executables")


class ExecutableBody(BaseModel):
    """Request body for ``POST /executables``.

    Example:
        {
            "filename": "Pong",
            "project": "<project name=\\"Pong\\">...</project>",
            "os": "lin64",
            "resolution": "800x600",
            "useCompleteSnap": false
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    filename: Any = Field(default=None, description="Output name (folder, launcher, Info.plist)")
    project: Any = Field(default=None, description="Project XML document")
    os: Any = Field(default=None, description="mac32, mac64, lin32, lin64, win32 or win64")
    resolution: Any = Field(default=None, description="Window size as '<width>x<height>'")
    use_complete_snap: Any = Field(
        default=None,
        alias="useCompleteSnap",
        description="Package the full resource tree instead of the reduced one",
    )

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def content_disposition(archive_name: str) -> str:
    """``attachment`` header value, RFC 5987-encoded for non-ASCII names."""
    quoted = quote(archive_name)
    if quoted != archive_name:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{archive_name}"'


def stream_package(package: ExecutablePackage, chunk_size: int) -> StreamingResponse:
    return StreamingResponse(
        package.iter_chunks(chunk_size),
        media_type=package.media_type,
        headers={
            "Content-Disposition": content_disposition(package.archive_name),
            "Content-Length": str(package.size),
        },
    )


@router.post(
    "",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"application/zip": {}}, "description": "The packaged executable"},
        400: {"model": ProblemDetail, "description": "Invalid request parameters"},
        500: {"model": ProblemDetail, "description": "Packaging failed"},
    },
)
async def create_executable(body: ExecutableBody, service: Service, request_id: RequestId) -> StreamingResponse:
    """Validate the request, package the project and stream the archive."""
    run = PackagingRun(request_id=request_id) if request_id else None
    package = await service.generate(body.to_params(), run=run)
    return stream_package(package, service.settings.read_chunk_size)
