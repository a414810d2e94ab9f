"""Platform packaging strategies — the OS-specific outer archive.

Each OS family wraps the runtime bundle differently. A
:class:`PlatformStrategy` owns both halves of that difference:

- :meth:`PlatformStrategy.compose_final` writes everything in the final
  package that does not depend on the runtime bundle (native support
  trees, executables, icons, launch templates).
- :meth:`PlatformStrategy.embed_runtime` writes the one entry that does:
  the drained runtime bytes, either as-is (mac) or behind a native stub
  (linux, windows).

Layouts::

    mac      <name>.app/Contents/{MacOS,Frameworks,Resources,Info.plist}
             <name>.app/Contents/Resources/app.nw          ← runtime
    linux    <name>.snapp/{libs..., lambda.png, launcher.sh}
             <filename>.desktop                          (optional)
             <name>.snapp/<filename>                      ← stub + runtime
    windows  <filename>/{libs...}
             <filename>/<filename>.exe                    ← stub + runtime

:class:`FinalPackageComposer` selects the strategy for a target and is the
only entry point the orchestrator uses. Adding a platform means adding one
strategy class and one :data:`PLATFORM_STRATEGIES` entry.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from snapp.core.errors import InvalidOperatingSystemError, PackagingError, ResourceReadError
from snapp.core.logging import get_logger
from snapp.core.settings import SnappSettings
from snapp.packaging.archive import UNIX_EXECUTABLE_MODE, ArchiveBuilder, join_entry
from snapp.packaging.models import OsFamily, TargetOs
from snapp.packaging.resources import MAC_ICON, WINDOW_ICON, ResourceStore, render_template

logger = get_logger(__name__)

FILENAME_PLACEHOLDER = "<filename>"
SHORT_FILENAME_PLACEHOLDER = "<short_filename>"

LAUNCHER_NAME = "launcher.sh"

# Fixed entries under <name>.snapp; the linux executable may not reuse them.
LINUX_RESERVED_NAMES = frozenset({LAUNCHER_NAME, WINDOW_ICON})


@dataclass(frozen=True, slots=True)
class PlatformContext:
    """What a strategy needs to know about the request."""

    os: TargetOs
    project_name: str
    filename: str


class PlatformStrategy(ABC):
    """Composition of the final package for one OS family."""

    family: ClassVar[OsFamily]

    def __init__(self, store: ResourceStore, settings: SnappSettings) -> None:
        self._store = store
        self._settings = settings

    @abstractmethod
    def root_dir(self, ctx: PlatformContext) -> str:
        """Top-level directory of the package."""

    @abstractmethod
    def payload_entry(self, ctx: PlatformContext) -> str:
        """Entry that carries the runtime bundle."""

    @abstractmethod
    async def compose_final(self, archive: ArchiveBuilder, ctx: PlatformContext) -> None:
        """Write every entry that does not depend on the runtime bundle."""

    @abstractmethod
    async def embed_runtime(self, archive: ArchiveBuilder, runtime: bytes, ctx: PlatformContext) -> None:
        """Write the runtime bundle entry."""

    def _check_payload_slot(self, archive: ArchiveBuilder, ctx: PlatformContext) -> None:
        """Fail before the runtime is built into the package if its entry is taken."""
        entry = self.payload_entry(ctx)
        if entry in archive:
            raise PackagingError(
                f"Runtime entry {entry!r} collides with a packaged resource",
                code="PAYLOAD_ENTRY_CONFLICT",
            ).with_context(os=ctx.os.value, filename=ctx.filename)

    async def _read_template(self, path: Path, ctx: PlatformContext) -> str:
        try:
            return await self._store.read_text(path)
        except ResourceReadError as exc:
            logger.error(
                f"{self.family.value}.template_read_failed",
                template=path.name,
                os=ctx.os.value,
                errno=exc.errno,
            )
            raise

    async def _read_stub(self, path: Path, ctx: PlatformContext) -> bytes:
        try:
            return await self._store.read_bytes(path)
        except ResourceReadError as exc:
            logger.error(
                f"{self.family.value}.stub_read_failed",
                os=ctx.os.value,
                path=exc.path,
                errno=exc.errno,
            )
            raise


# ---------------------------------------------------------------------------
# macOS
# ---------------------------------------------------------------------------

# (binary under nw/<os>/bin, destination under <name>.app/Contents)
MAC_EXECUTABLES: tuple[tuple[str, str], ...] = (
    ("nwjs", "MacOS/nwjs"),
    ("nwjs Helper", "Frameworks/nwjs Helper.app/Contents/MacOS/nwjs Helper"),
    ("nwjs Helper EH", "Frameworks/nwjs Helper EH.app/Contents/MacOS/nwjs Helper EH"),
    ("nwjs Helper NP", "Frameworks/nwjs Helper NP.app/Contents/MacOS/nwjs Helper NP"),
)


class MacPlatform(PlatformStrategy):
    """``<name>.app`` application bundle; the runtime rides as ``app.nw``."""

    family = OsFamily.MAC

    def root_dir(self, ctx: PlatformContext) -> str:
        return f"{ctx.project_name}.app"

    def contents_dir(self, ctx: PlatformContext) -> str:
        return join_entry(self.root_dir(ctx), "Contents")

    def payload_entry(self, ctx: PlatformContext) -> str:
        return join_entry(self.contents_dir(ctx), "Resources", "app.nw")

    def short_name(self, filename: str) -> str:
        """Info.plist short name: the filename if short enough, else the fallback."""
        if len(filename) < self._settings.short_name_limit:
            return filename
        return self._settings.short_name_fallback

    def render_info_plist(self, template: str, filename: str) -> str:
        return render_template(
            template,
            {
                FILENAME_PLACEHOLDER: filename,
                SHORT_FILENAME_PLACEHOLDER: self.short_name(filename),
            },
        )

    async def compose_final(self, archive: ArchiveBuilder, ctx: PlatformContext) -> None:
        contents = self.contents_dir(ctx)
        await archive.add_directory(
            self._store.mac_contents_dir(ctx.os), contents, preserve_modes=True
        )
        for binary, destination in MAC_EXECUTABLES:
            await archive.add_file(
                self._store.native_binary(ctx.os, binary),
                join_entry(contents, destination),
                mode=UNIX_EXECUTABLE_MODE,
            )
        await archive.add_file(
            self._store.icon(MAC_ICON), join_entry(contents, "Resources", "nw.icns")
        )

        template = await self._read_template(self._store.info_plist_template(ctx.os), ctx)
        archive.append(self.render_info_plist(template, ctx.filename), join_entry(contents, "Info.plist"))
        self._check_payload_slot(archive, ctx)

    async def embed_runtime(self, archive: ArchiveBuilder, runtime: bytes, ctx: PlatformContext) -> None:
        archive.append(runtime, self.payload_entry(ctx), mode=UNIX_EXECUTABLE_MODE)


# ---------------------------------------------------------------------------
# Linux
# ---------------------------------------------------------------------------


class LinuxPlatform(PlatformStrategy):
    """``<name>.snapp`` directory with a self-contained launcher binary."""

    family = OsFamily.LINUX

    def root_dir(self, ctx: PlatformContext) -> str:
        return f"{ctx.project_name}.snapp"

    def payload_entry(self, ctx: PlatformContext) -> str:
        return join_entry(self.root_dir(ctx), ctx.filename)

    def desktop_entry_name(self, ctx: PlatformContext) -> str:
        return f"{ctx.filename}.desktop"

    async def compose_final(self, archive: ArchiveBuilder, ctx: PlatformContext) -> None:
        root = self.root_dir(ctx)
        await archive.add_directory(self._store.native_libs_dir(ctx.os), root, preserve_modes=True)
        await archive.add_file(self._store.icon(WINDOW_ICON), join_entry(root, WINDOW_ICON))

        await asyncio.gather(
            self._write_launcher(archive, ctx),
            self._write_desktop_entry(archive, ctx),
        )
        self._check_payload_slot(archive, ctx)

    async def _write_launcher(self, archive: ArchiveBuilder, ctx: PlatformContext) -> None:
        template = await self._read_template(self._store.launcher_template(), ctx)
        archive.append(
            render_template(template, {FILENAME_PLACEHOLDER: ctx.filename}),
            join_entry(self.root_dir(ctx), LAUNCHER_NAME),
            mode=UNIX_EXECUTABLE_MODE,
        )

    async def _write_desktop_entry(self, archive: ArchiveBuilder, ctx: PlatformContext) -> None:
        """Desktop entry is optional: a read failure is logged and skipped."""
        try:
            template = await self._store.read_text(self._store.desktop_entry_template())
        except ResourceReadError as exc:
            logger.warning(
                "linux.desktop_entry_skipped",
                os=ctx.os.value,
                path=exc.path,
                errno=exc.errno,
            )
            return
        archive.append(
            render_template(template, {FILENAME_PLACEHOLDER: ctx.filename}),
            self.desktop_entry_name(ctx),
            mode=UNIX_EXECUTABLE_MODE,
        )

    async def embed_runtime(self, archive: ArchiveBuilder, runtime: bytes, ctx: PlatformContext) -> None:
        stub = await self._read_stub(self._store.linux_stub(ctx.os), ctx)
        archive.append(stub + runtime, self.payload_entry(ctx), mode=UNIX_EXECUTABLE_MODE)


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


class WindowsPlatform(PlatformStrategy):
    """``<filename>`` folder holding ``<filename>.exe`` (stub + runtime)."""

    family = OsFamily.WINDOWS

    def root_dir(self, ctx: PlatformContext) -> str:
        return ctx.filename

    def payload_entry(self, ctx: PlatformContext) -> str:
        return join_entry(self.root_dir(ctx), f"{ctx.filename}.exe")

    async def compose_final(self, archive: ArchiveBuilder, ctx: PlatformContext) -> None:
        await archive.add_directory(self._store.native_libs_dir(ctx.os), self.root_dir(ctx))
        self._check_payload_slot(archive, ctx)

    async def embed_runtime(self, archive: ArchiveBuilder, runtime: bytes, ctx: PlatformContext) -> None:
        stub = await self._read_stub(self._store.windows_stub(ctx.os), ctx)
        archive.append(stub + runtime, self.payload_entry(ctx))


PLATFORM_STRATEGIES: dict[OsFamily, type[PlatformStrategy]] = {
    OsFamily.MAC: MacPlatform,
    OsFamily.LINUX: LinuxPlatform,
    OsFamily.WINDOWS: WindowsPlatform,
}


class FinalPackageComposer:
    """Dispatch final-package composition to the target's strategy."""

    def __init__(self, store: ResourceStore, settings: SnappSettings) -> None:
        self._store = store
        self._settings = settings

    def platform_for(self, os: TargetOs | str) -> tuple[PlatformStrategy, TargetOs]:
        """Strategy and parsed target for *os*.

        Raises:
            InvalidOperatingSystemError: *os* is not a supported target.
        """
        try:
            target = TargetOs(os)
        except ValueError:
            logger.error("packaging.invalid_os", os=str(os))
            raise InvalidOperatingSystemError(str(os)) from None
        strategy_cls = PLATFORM_STRATEGIES[target.family]
        return strategy_cls(self._store, self._settings), target

    async def compose(
        self,
        archive: ArchiveBuilder,
        os: TargetOs | str,
        project_name: str,
        filename: str,
    ) -> PlatformStrategy:
        """Write the OS-specific layout into *archive*; returns the strategy used."""
        strategy, target = self.platform_for(os)
        await strategy.compose_final(archive, PlatformContext(target, project_name, filename))
        return strategy


__all__ = [
    "FILENAME_PLACEHOLDER",
    "FinalPackageComposer",
    "LAUNCHER_NAME",
    "LINUX_RESERVED_NAMES",
    "LinuxPlatform",
    "MAC_EXECUTABLES",
    "MacPlatform",
    "PLATFORM_STRATEGIES",
    "PlatformContext",
    "PlatformStrategy",
    "SHORT_FILENAME_PLACEHOLDER",
    "WindowsPlatform",
]
