"""
The packaging pipeline.

Modules, leaves first:

- ``project``      pull-based scan of the project XML for its name
- ``manifest``     ``package.json`` and ``gui.js`` builders
- ``archive``      append-only zip builder
- ``resources``    the read-only resource store
- ``runtime``      inner runtime bundle composition
- ``platforms``    outer, OS-specific package composition
- ``orchestrator`` sequencing and the packaging state machine
- ``validation``   raw parameters to :class:`PackageRequest`
- ``service``      load, validate, package
"""

from snapp.packaging.archive import ArchiveBuilder
from snapp.packaging.models import (
    PACKAGING_VALID_TRANSITIONS,
    ExecutablePackage,
    OsFamily,
    PackageRequest,
    PackagingState,
    ProjectDescriptor,
    Resolution,
    ResourceVariant,
    TargetOs,
)
from snapp.packaging.orchestrator import PackagingOrchestrator, PackagingRun
from snapp.packaging.platforms import FinalPackageComposer, LinuxPlatform, MacPlatform, WindowsPlatform
from snapp.packaging.project import describe_project, extract_project_name
from snapp.packaging.resources import ResourceStore
from snapp.packaging.runtime import RuntimePackageComposer
from snapp.packaging.service import ExecutableService
from snapp.packaging.validation import validate_request

__all__ = [
    "PACKAGING_VALID_TRANSITIONS",
    "ArchiveBuilder",
    "ExecutablePackage",
    "ExecutableService",
    "FinalPackageComposer",
    "LinuxPlatform",
    "MacPlatform",
    "OsFamily",
    "PackageRequest",
    "PackagingOrchestrator",
    "PackagingRun",
    "PackagingState",
    "ProjectDescriptor",
    "Resolution",
    "ResourceStore",
    "ResourceVariant",
    "RuntimePackageComposer",
    "TargetOs",
    "WindowsPlatform",
    "describe_project",
    "extract_project_name",
    "validate_request",
]
