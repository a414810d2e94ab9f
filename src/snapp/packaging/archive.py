"""ArchiveBuilder — append-only zip archive under construction.

Both the runtime bundle and the final package are built with this class.
The builder enforces the ordering rules the pipeline depends on:

1. Entries can only be added while the archive is open.
2. Entry names are unique per archive.
3. Bytes can only be read after :meth:`ArchiveBuilder.finalize`.

File reads from the resource store run in a worker thread
(``asyncio.to_thread``) and are the builder's suspension points; the zip
itself is only ever mutated from the event-loop thread, so concurrent
``add_file`` / ``add_directory`` calls on one builder interleave entry by
entry and never corrupt the container.

Output is written to a ``SpooledTemporaryFile``: small archives stay in
memory, large ones (a full runtime is well over 100 MB) spill to disk.

Example::

    archive = ArchiveBuilder("runtime")
    archive.append('{"name": "snapapp"}', "package.json")
    await archive.add_directory(resources / "snap" / "full" / "files", "")
    await archive.finalize()
    payload = await archive.drain()
"""

from __future__ import annotations

import asyncio
import os
import stat
import tempfile
import time
import zipfile
from pathlib import Path, PurePosixPath
from typing import IO

from snapp.core.errors import ResourceReadError, StreamError
from snapp.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FILE_MODE = 0o644
UNIX_EXECUTABLE_MODE = 0o755

_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}

_ZIP_MIN_DATE = (1980, 1, 1, 0, 0, 0)


def normalize_entry_name(name: str) -> str:
    """Return *name* as a relative POSIX archive path.

    Raises:
        StreamError: for empty names, absolute paths and ``..`` segments.
    """
    candidate = name.replace("\\", "/")
    path = PurePosixPath(candidate)
    if not candidate or path.is_absolute() or ".." in path.parts:
        raise StreamError(f"Unsafe archive entry name: {name!r}", code="UNSAFE_ENTRY_NAME")
    normalized = str(path)
    if normalized in ("", "."):
        raise StreamError(f"Unsafe archive entry name: {name!r}", code="UNSAFE_ENTRY_NAME")
    return normalized


def join_entry(prefix: str, *parts: str) -> str:
    """Join archive path segments; an empty *prefix* means the archive root."""
    segments = [p for p in (prefix, *parts) if p]
    return "/".join(segment.strip("/") for segment in segments)


class ArchiveBuilder:
    """Append-only zip archive.

    Parameters
    ----------
    label:
        Name used in log events (``"runtime"``, ``"final"``).
    compression:
        ``"deflated"`` (default) or ``"stored"``.
    spool_max_size:
        Bytes kept in memory before the output spills to a temp file.
    """

    def __init__(
        self,
        label: str,
        *,
        compression: str = "deflated",
        spool_max_size: int = 32 * 1024 * 1024,
    ) -> None:
        if compression not in _COMPRESSION:
            raise StreamError(f"Unknown archive compression: {compression!r}")
        self.label = label
        self._compression = _COMPRESSION[compression]
        self._spool: IO[bytes] | None = tempfile.SpooledTemporaryFile(max_size=spool_max_size)
        self._zip: zipfile.ZipFile | None = zipfile.ZipFile(
            self._spool, mode="w", compression=self._compression, allowZip64=True
        )
        self._names: list[str] = []
        self._claimed: set[str] = set()
        self._finalized = False
        self._size = 0
        self._date_time = max(time.localtime()[:6], _ZIP_MIN_DATE)

    # -- state ---------------------------------------------------------------

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def entry_names(self) -> tuple[str, ...]:
        """Names of the entries written so far, in write order."""
        return tuple(self._names)

    @property
    def size(self) -> int:
        """Size in bytes of the finalized archive."""
        self._require_finalized()
        return self._size

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._claimed

    # -- writing -------------------------------------------------------------

    def append(self, data: bytes | str, name: str, *, mode: int | None = None) -> None:
        """Write in-memory *data* as entry *name*.

        ``mode`` is a unix permission mask (``0o755`` for executables);
        entries without a mode are written ``0o644``.
        """
        entry = self._claim(name)
        self._write(entry, data.encode("utf-8") if isinstance(data, str) else data, mode)

    async def add_file(self, source: Path, name: str, *, mode: int | None = None) -> None:
        """Copy the file at *source* into the archive as *name*."""
        entry = self._claim(name)
        try:
            data = await _read_source(source)
        except ResourceReadError:
            self._claimed.discard(entry)
            raise
        self._write(entry, data, mode)

    async def add_directory(self, source: Path, prefix: str, *, preserve_modes: bool = False) -> int:
        """Copy every file under *source* to ``<prefix>/<relative path>``.

        Files are added in sorted order. With ``preserve_modes`` the source
        permission bits are kept (unix targets); otherwise every file is
        written ``0o644``.

        Returns the number of files added.
        """
        self._require_open()
        files = await _list_tree(source)
        for relative, file_mode in files:
            await self.add_file(
                source / relative,
                join_entry(prefix, relative),
                mode=file_mode if preserve_modes else None,
            )
        logger.debug(
            "archive.directory_added",
            archive=self.label,
            source=str(source),
            prefix=prefix,
            files=len(files),
        )
        return len(files)

    # -- finishing -----------------------------------------------------------

    async def finalize(self) -> None:
        """Write the central directory. No entries may be added afterwards."""
        self._require_open()
        self._finalized = True
        zf, self._zip = self._zip, None
        try:
            await asyncio.to_thread(zf.close)
        except (OSError, ValueError, zipfile.LargeZipFile) as exc:
            raise StreamError(f"Unable to finalize {self.label} archive: {exc}", cause=exc) from exc
        self._size = self._spool.tell() if self._spool is not None else 0
        logger.debug("archive.finalized", archive=self.label, entries=len(self._names), size=self._size)

    def open_stream(self) -> IO[bytes]:
        """Hand over the finalized archive stream; the builder forgets it."""
        self._require_finalized()
        if self._spool is None:
            raise StreamError(f"{self.label} archive stream was already taken")
        stream, self._spool = self._spool, None
        stream.seek(0)
        return stream

    async def drain(self, chunk_size: int = 64 * 1024) -> bytes:
        """Read the whole finalized archive into one buffer and release it."""
        stream = self.open_stream()
        try:
            return await asyncio.to_thread(_read_all, stream, chunk_size)
        except OSError as exc:
            raise StreamError(f"Unable to drain {self.label} archive: {exc}", cause=exc) from exc
        finally:
            stream.close()

    def discard(self) -> None:
        """Drop the archive without finalizing it (failed runs)."""
        self._finalized = True
        zf, self._zip = self._zip, None
        if zf is not None:
            try:
                zf.close()
            except (OSError, ValueError) as exc:
                logger.warning("archive.discard_failed", archive=self.label, error=str(exc))
        if self._spool is not None:
            self._spool.close()
            self._spool = None

    # -- internals -----------------------------------------------------------

    def _require_open(self) -> None:
        if self._finalized or self._zip is None:
            raise StreamError(f"{self.label} archive is finalized; no entries may be added")

    def _require_finalized(self) -> None:
        if not self._finalized:
            raise StreamError(f"{self.label} archive must be finalized before it is read")

    def _claim(self, name: str) -> str:
        self._require_open()
        entry = normalize_entry_name(name)
        if entry in self._claimed:
            raise StreamError(
                f"Duplicate entry {entry!r} in {self.label} archive", code="DUPLICATE_ENTRY"
            )
        self._claimed.add(entry)
        return entry

    def _write(self, entry: str, data: bytes, mode: int | None) -> None:
        self._require_open()
        info = zipfile.ZipInfo(entry, date_time=self._date_time)
        info.compress_type = self._compression
        info.create_system = 3  # unix, so external_attr carries permission bits
        info.external_attr = ((mode if mode is not None else DEFAULT_FILE_MODE) | stat.S_IFREG) << 16
        try:
            self._zip.writestr(info, data)
        except (OSError, ValueError, zipfile.LargeZipFile) as exc:
            raise StreamError(f"Unable to write {entry!r}: {exc}", cause=exc) from exc
        self._names.append(entry)


async def _read_source(source: Path) -> bytes:
    try:
        return await asyncio.to_thread(source.read_bytes)
    except OSError as exc:
        raise ResourceReadError(
            f"Unable to read {source}", path=str(source), errno=exc.errno, cause=exc
        ) from exc


async def _list_tree(source: Path) -> list[tuple[str, int]]:
    try:
        return await asyncio.to_thread(_walk_files, source)
    except OSError as exc:
        raise ResourceReadError(
            f"Unable to read directory {source}", path=str(source), errno=exc.errno, cause=exc
        ) from exc


def _walk_files(source: Path) -> list[tuple[str, int]]:
    """Sorted ``(relative posix path, permission bits)`` for every file under *source*."""
    if not source.is_dir():
        raise FileNotFoundError(2, "No such directory", str(source))
    found: list[tuple[str, int]] = []

    def _raise(error: OSError) -> None:
        raise error

    for dirpath, dirnames, filenames in os.walk(source, onerror=_raise):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            relative = path.relative_to(source).as_posix()
            found.append((relative, stat.S_IMODE(path.stat().st_mode)))
    return found


def _read_all(stream: IO[bytes], chunk_size: int) -> bytes:
    parts: list[bytes] = []
    while chunk := stream.read(chunk_size):
        parts.append(chunk)
    return b"".join(parts)


__all__ = [
    "ArchiveBuilder",
    "DEFAULT_FILE_MODE",
    "UNIX_EXECUTABLE_MODE",
    "join_entry",
    "normalize_entry_name",
]
