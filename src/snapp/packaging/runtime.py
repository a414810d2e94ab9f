"""RuntimePackageComposer — builds the inner runtime bundle.

The runtime bundle is OS-independent apart from two manifest/script
details: the ``nodejs`` flag and the platform snippet in ``gui.js``. Its
entries are::

    package.json     runtime manifest
    <static tree>    snap/<variant>/files/**, at the archive root
    gui.js           base GUI script + snippet + project payload
"""

from __future__ import annotations

from snapp.core.errors import ResourceReadError
from snapp.core.logging import get_logger
from snapp.packaging.archive import ArchiveBuilder
from snapp.packaging.manifest import build_bootstrap_script, build_manifest, escape_project_payload
from snapp.packaging.models import PackageRequest, ProjectDescriptor
from snapp.packaging.resources import ResourceStore

logger = get_logger(__name__)

MANIFEST_ENTRY = "package.json"
BOOTSTRAP_ENTRY = "gui.js"


class RuntimePackageComposer:
    """Fill a runtime :class:`ArchiveBuilder` for one request."""

    def __init__(self, store: ResourceStore) -> None:
        self._store = store

    async def compose(
        self,
        archive: ArchiveBuilder,
        project: ProjectDescriptor,
        request: PackageRequest,
    ) -> None:
        """Write the manifest, static tree and bootstrap script into *archive*.

        Raises:
            ResourceReadError: the variant's base GUI script or static tree
                could not be read. Always fatal.
        """
        variant = request.variant
        archive.append(build_manifest(request.os, project.name, request.resolution), MANIFEST_ENTRY)

        gui_path = self._store.gui_script(variant)
        try:
            base_script = await self._store.read_text(gui_path)
        except ResourceReadError as exc:
            logger.error(
                "runtime.gui_read_failed",
                variant=variant.value,
                path=exc.path,
                errno=exc.errno,
            )
            raise

        files = await archive.add_directory(self._store.variant_files_dir(variant), "")

        script = build_bootstrap_script(
            base_script,
            request.os,
            escape_project_payload(project.raw_xml),
            project_name=project.name,
        )
        archive.append(script, BOOTSTRAP_ENTRY)
        logger.info("runtime.composed", variant=variant.value, static_files=files)


async def compose_runtime_package(
    archive: ArchiveBuilder,
    store: ResourceStore,
    project: ProjectDescriptor,
    request: PackageRequest,
) -> None:
    """Functional shortcut for :meth:`RuntimePackageComposer.compose`."""
    await RuntimePackageComposer(store).compose(archive, project, request)


__all__ = ["BOOTSTRAP_ENTRY", "MANIFEST_ENTRY", "RuntimePackageComposer", "compose_runtime_package"]
