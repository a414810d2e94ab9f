"""Packaging domain models.

Defines the data structures that flow through the packaging pipeline:

- TargetOs / OsFamily: the six supported targets and their families
- ResourceVariant: ``full`` vs ``reduced`` static resource trees
- Resolution: window dimensions parsed from ``"WxH"``
- PackageRequest: a validated, immutable packaging request
- ProjectDescriptor: the raw project XML plus its declared name
- PackagingState: orchestrator states and their legal transitions
- ExecutablePackage: the finished outer archive, handed out once
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import IO

from snapp.core.errors import InvalidTransitionError, StreamError


class OsFamily(str, Enum):
    """Operating-system family; selects the platform packaging strategy."""

    MAC = "mac"
    LINUX = "linux"
    WINDOWS = "windows"


class TargetOs(str, Enum):
    """Supported packaging targets."""

    MAC32 = "mac32"
    MAC64 = "mac64"
    LIN32 = "lin32"
    LIN64 = "lin64"
    WIN32 = "win32"
    WIN64 = "win64"

    @property
    def family(self) -> OsFamily:
        return _FAMILIES[self]


_FAMILIES: dict[TargetOs, OsFamily] = {
    TargetOs.MAC32: OsFamily.MAC,
    TargetOs.MAC64: OsFamily.MAC,
    TargetOs.LIN32: OsFamily.LINUX,
    TargetOs.LIN64: OsFamily.LINUX,
    TargetOs.WIN32: OsFamily.WINDOWS,
    TargetOs.WIN64: OsFamily.WINDOWS,
}


def os_family(os: TargetOs | str) -> OsFamily | None:
    """Family of *os*, or ``None`` for values that are not a supported target."""
    try:
        return TargetOs(os).family
    except ValueError:
        return None


class ResourceVariant(str, Enum):
    """Static resource tree selected by ``useCompleteSnap``."""

    FULL = "full"
    REDUCED = "reduced"

    @classmethod
    def for_request(cls, use_complete_snap: bool) -> ResourceVariant:
        return cls.FULL if use_complete_snap else cls.REDUCED


class ResolutionFormatError(ValueError):
    """Raised when a resolution string is not ``"<width>x<height>"``."""


_RESOLUTION_RE = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


@dataclass(frozen=True, slots=True)
class Resolution:
    """Requested window dimensions."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ResolutionFormatError(
                f"Resolution dimensions must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def from_string(cls, value: str) -> Resolution:
        """Parse ``"800x600"``.

        Raises:
            ResolutionFormatError: if *value* is not two positive integers
                separated by ``x``.
        """
        match = _RESOLUTION_RE.match(value)
        if match is None:
            raise ResolutionFormatError(f"Invalid resolution: {value!r}")
        return cls(width=int(match.group(1)), height=int(match.group(2)))

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True, slots=True)
class PackageRequest:
    """A validated packaging request.

    Attributes:
        filename: Output name used for Windows folders, Linux launchers and
            the Info.plist display name.
        project_xml: The raw project document.
        os: Target OS. Kept as ``TargetOs | str`` so that unsupported values
            reach the platform dispatch and fail there.
        resolution: Window size embedded in the runtime manifest.
        use_complete_snap: Selects the ``full`` resource variant.
    """

    filename: str
    project_xml: str
    os: TargetOs | str
    resolution: Resolution
    use_complete_snap: bool = False

    @property
    def variant(self) -> ResourceVariant:
        return ResourceVariant.for_request(self.use_complete_snap)


@dataclass(frozen=True, slots=True)
class ProjectDescriptor:
    """Project document and the name declared by its ``project`` element."""

    raw_xml: str
    name: str


# ---------------------------------------------------------------------------
# Orchestrator state machine
# ---------------------------------------------------------------------------


class PackagingState(str, Enum):
    """State of a single packaging run.

    Valid transition graph::

        IDLE              → EXTRACTING_NAME
        EXTRACTING_NAME   → COMPOSING_RUNTIME
        COMPOSING_RUNTIME → DRAINING_RUNTIME
        DRAINING_RUNTIME  → COMPOSING_FINAL
        COMPOSING_FINAL   → EMBEDDING_PAYLOAD
        EMBEDDING_PAYLOAD → FINALIZING
        FINALIZING        → DONE
        any non-terminal  → FAILED
        DONE / FAILED     → (terminal)
    """

    IDLE = "idle"
    EXTRACTING_NAME = "extracting_name"
    COMPOSING_RUNTIME = "composing_runtime"
    DRAINING_RUNTIME = "draining_runtime"
    COMPOSING_FINAL = "composing_final"
    EMBEDDING_PAYLOAD = "embedding_payload"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PackagingState.DONE, PackagingState.FAILED)


PACKAGING_VALID_TRANSITIONS: dict[PackagingState, frozenset[PackagingState]] = {
    PackagingState.IDLE: frozenset({PackagingState.EXTRACTING_NAME, PackagingState.FAILED}),
    PackagingState.EXTRACTING_NAME: frozenset({PackagingState.COMPOSING_RUNTIME, PackagingState.FAILED}),
    PackagingState.COMPOSING_RUNTIME: frozenset({PackagingState.DRAINING_RUNTIME, PackagingState.FAILED}),
    PackagingState.DRAINING_RUNTIME: frozenset({PackagingState.COMPOSING_FINAL, PackagingState.FAILED}),
    PackagingState.COMPOSING_FINAL: frozenset({PackagingState.EMBEDDING_PAYLOAD, PackagingState.FAILED}),
    PackagingState.EMBEDDING_PAYLOAD: frozenset({PackagingState.FINALIZING, PackagingState.FAILED}),
    PackagingState.FINALIZING: frozenset({PackagingState.DONE, PackagingState.FAILED}),
    PackagingState.DONE: frozenset(),  # terminal
    PackagingState.FAILED: frozenset(),  # terminal
}


def validate_packaging_transition(current: PackagingState, target: PackagingState) -> None:
    """Raise :class:`InvalidTransitionError` if *current → target* is illegal."""
    allowed = PACKAGING_VALID_TRANSITIONS.get(current, frozenset())
    if target not in allowed:
        raise InvalidTransitionError(current.value, target.value)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class ExecutablePackage:
    """The finished outer archive.

    Wraps the single readable stream produced by the outer archive. The
    stream can be taken exactly once, either with :meth:`open` or by
    iterating :meth:`iter_chunks`; a second attempt raises
    :class:`StreamError`.
    """

    def __init__(
        self,
        stream: IO[bytes],
        *,
        request_id: str,
        project_name: str,
        filename: str,
        os: str,
        size: int,
        entry_names: tuple[str, ...],
    ) -> None:
        self._stream: IO[bytes] | None = stream
        self.request_id = request_id
        self.project_name = project_name
        self.filename = filename
        self.os = os
        self.size = size
        self.entry_names = entry_names

    media_type = "application/zip"

    @property
    def archive_name(self) -> str:
        """Suggested download name for the archive."""
        return f"{self.filename}.zip"

    @property
    def consumed(self) -> bool:
        return self._stream is None

    def open(self) -> IO[bytes]:
        """Hand the archive stream to the caller. The caller owns closing it."""
        if self._stream is None:
            raise StreamError("Executable package stream was already handed out").with_context(
                request_id=self.request_id
            )
        stream, self._stream = self._stream, None
        stream.seek(0)
        return stream

    def iter_chunks(self, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        """Yield the archive in chunks, closing the stream when exhausted."""
        stream = self.open()
        try:
            while chunk := stream.read(chunk_size):
                yield chunk
        finally:
            stream.close()

    def __repr__(self) -> str:
        return (
            f"ExecutablePackage(filename={self.filename!r}, os={self.os!r}, "
            f"size={self.size}, entries={len(self.entry_names)})"
        )
