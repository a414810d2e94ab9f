"""Request validation.

Turns raw transport parameters (``filename``, ``project``, ``os``,
``resolution``, ``useCompleteSnap``) into a :class:`PackageRequest`.

Fields are checked in that order and the first failure wins. Once the
target is known, the filename is checked against the names the linux
layout reserves for itself (``launcher.sh``, ``lambda.png``). Every failure
is a :class:`ValidationError` whose message reads
``Error validating parameters: <detail>.`` and whose code names the field::

    INVALID_FILENAME          empty / non-string / path-like / reserved filename
    INVALID_PROJECT           empty / non-string project document
    XML_VALIDATION_ERROR      the project document is not well-formed XML
    XML_PROPERTY_MISSING      no ``project`` element carries a name
    INVALID_OS                not one of mac32, mac64, lin32, lin64, win32, win64
    INVALID_RESOLUTION        not ``<width>x<height>``
    INVALID_USE_COMPLETE_SNAP not a boolean
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from snapp.core.errors import MissingProjectNameError, ValidationError, XmlParseError
from snapp.packaging.models import OsFamily, PackageRequest, Resolution, ResolutionFormatError, TargetOs
from snapp.packaging.platforms import LINUX_RESERVED_NAMES
from snapp.packaging.project import DEFAULT_CHUNK_SIZE, has_project_name

MESSAGE_TEMPLATE = "Error validating parameters: {detail}."

# Characters that would let a filename escape its archive directory.
_FORBIDDEN_FILENAME_CHARS = ("/", "\\", "\x00")


def _invalid(detail: str, *, code: str, field: str, value: Any = None, cause: Exception | None = None) -> ValidationError:
    return ValidationError(
        MESSAGE_TEMPLATE.format(detail=detail.rstrip(".")),
        code=code,
        field=field,
        value=value,
        cause=cause,
    )


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_filename(filename: Any) -> str:
    if _is_blank(filename):
        raise _invalid("filename must be a non-empty string", code="INVALID_FILENAME", field="filename", value=filename)
    if any(char in filename for char in _FORBIDDEN_FILENAME_CHARS) or filename in (".", ".."):
        raise _invalid(
            f"filename {filename!r} must not contain path separators",
            code="INVALID_FILENAME",
            field="filename",
            value=filename,
        )
    return filename


def validate_filename_for_os(filename: str, os: TargetOs) -> str:
    """Reject filenames that collide with fixed entries of the target layout."""
    if os.family is OsFamily.LINUX and filename in LINUX_RESERVED_NAMES:
        raise _invalid(
            f"filename {filename!r} is reserved on {os.value}",
            code="INVALID_FILENAME",
            field="filename",
            value=filename,
        )
    return filename


def validate_project(project: Any, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Check that *project* is well-formed XML declaring a project name.

    The whole document is scanned, so a syntax error after the name is
    still reported.
    """
    if _is_blank(project):
        raise _invalid("project must be a non-empty string", code="INVALID_PROJECT", field="project")
    try:
        found = has_project_name(project, chunk_size=chunk_size)
    except XmlParseError as exc:
        raise _invalid(exc.message, code=exc.code, field="project", cause=exc) from exc
    if not found:
        missing = MissingProjectNameError()
        raise _invalid(missing.message, code=missing.code, field="project")
    return project


def validate_os(os: Any) -> TargetOs:
    valid = ", ".join(target.value for target in TargetOs)
    if not isinstance(os, str):
        raise _invalid(f"os must be one of {valid}", code="INVALID_OS", field="os", value=os)
    try:
        return TargetOs(os)
    except ValueError:
        raise _invalid(f"os must be one of {valid}, got {os!r}", code="INVALID_OS", field="os", value=os) from None


def validate_resolution(resolution: Any) -> Resolution:
    if _is_blank(resolution):
        raise _invalid(
            "resolution must be a non-empty string", code="INVALID_RESOLUTION", field="resolution", value=resolution
        )
    try:
        return Resolution.from_string(resolution)
    except ResolutionFormatError as exc:
        raise _invalid(str(exc), code="INVALID_RESOLUTION", field="resolution", value=resolution, cause=exc) from exc


def validate_use_complete_snap(use_complete_snap: Any) -> bool:
    # bool only: 0/1 and "true" are rejected
    if not isinstance(use_complete_snap, bool):
        raise _invalid(
            "useCompleteSnap must be a boolean",
            code="INVALID_USE_COMPLETE_SNAP",
            field="useCompleteSnap",
            value=use_complete_snap,
        )
    return use_complete_snap


def validate_request(params: Mapping[str, Any], *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> PackageRequest:
    """Validate raw transport parameters into a :class:`PackageRequest`.

    Raises:
        ValidationError: for the first invalid field.
    """
    filename = validate_filename(params.get("filename"))
    project = validate_project(params.get("project"), chunk_size=chunk_size)
    os = validate_os(params.get("os"))
    validate_filename_for_os(filename, os)
    resolution = validate_resolution(params.get("resolution"))
    use_complete_snap = validate_use_complete_snap(params.get("useCompleteSnap"))
    return PackageRequest(
        filename=filename,
        project_xml=project,
        os=os,
        resolution=resolution,
        use_complete_snap=use_complete_snap,
    )


__all__ = [
    "MESSAGE_TEMPLATE",
    "validate_filename",
    "validate_filename_for_os",
    "validate_os",
    "validate_project",
    "validate_request",
    "validate_resolution",
    "validate_use_complete_snap",
]
