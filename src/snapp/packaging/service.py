"""ExecutableService — the request handler behind the API and CLI.

Loads the project document (from a path or from the parameters), validates
the raw parameters and runs the orchestrator::

    service = ExecutableService.from_settings(get_settings())
    package = await service.generate(
        {"filename": "Demo", "os": "lin64", "resolution": "800x600", "useCompleteSnap": False},
        project_path=Path("demo.xml"),
    )
    with package.open() as stream:
        ...
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from snapp.core.errors import ProjectLoadError
from snapp.core.logging import get_logger
from snapp.core.settings import SnappSettings
from snapp.packaging.models import ExecutablePackage
from snapp.packaging.orchestrator import PackagingOrchestrator, PackagingRun
from snapp.packaging.resources import ResourceStore
from snapp.packaging.validation import validate_request

logger = get_logger(__name__)


class ExecutableService:
    """Validate a request and package it."""

    def __init__(self, store: ResourceStore, settings: SnappSettings) -> None:
        self.store = store
        self.settings = settings
        self.orchestrator = PackagingOrchestrator(store, settings)

    @classmethod
    def from_settings(cls, settings: SnappSettings, *, must_exist: bool = False) -> ExecutableService:
        return cls(ResourceStore.from_settings(settings, must_exist=must_exist), settings)

    async def load_project(self, path: Path) -> str:
        """Read a project file as UTF-8 text.

        Raises:
            ProjectLoadError: the file is missing, unreadable or not UTF-8.
        """
        try:
            return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("project.load_failed", path=str(path), error=str(exc))
            raise ProjectLoadError(f"Unable to load project {path}", cause=exc).with_context(
                path=str(path)
            ) from exc

    async def generate(
        self,
        params: Mapping[str, Any],
        *,
        project_path: Path | None = None,
        run: PackagingRun | None = None,
    ) -> ExecutablePackage:
        """Validate *params* and build the executable package.

        When *project_path* is given the document is read from it and
        replaces any ``project`` value in *params*.

        Raises:
            ProjectLoadError: *project_path* could not be read.
            ValidationError: a parameter is invalid; nothing is packaged.
            SnappError: any packaging failure.
        """
        values = dict(params)
        if project_path is not None:
            values["project"] = await self.load_project(project_path)
        request = validate_request(values, chunk_size=self.settings.read_chunk_size)
        return await self.orchestrator.package(request, run=run)


__all__ = ["ExecutableService"]
