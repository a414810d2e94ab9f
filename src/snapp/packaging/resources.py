"""ResourceStore — the read-only resource tree the pipeline packages from.

The directory layout is fixed; existing resource bundles depend on it::

    <root>/
      snap/{full,reduced}/files/...          static runtime tree
      snap/{full,reduced}/gui/gui.js         base GUI script
      nw/<os>/Contents/...                   macOS support tree
      nw/<os>/bin/nwjs, nwjs Helper{, EH, NP}  macOS executables
      nw/<os>/bin/nw                         Linux native stub
      nw/<os>/lib/...                        Linux / Windows native libraries
      nw/<os>/exe/nw.exe                     Windows native stub
      conf/<os>/Info.plist                   macOS property-list template
      conf/linux/launcher.sh                 Linux launcher template
      conf/linux/app.desktop                 Linux desktop-entry template
      icons/lambda.icns, icons/lambda.png    application icons

Reads go through a worker thread and raise :class:`ResourceReadError`
carrying the store-relative path and errno.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from snapp.core.errors import ConfigError, ResourceReadError
from snapp.core.logging import get_logger
from snapp.core.settings import SnappSettings
from snapp.packaging.models import ResourceVariant, TargetOs

logger = get_logger(__name__)

MAC_ICON = "lambda.icns"
WINDOW_ICON = "lambda.png"


class ResourceStore:
    """Paths into, and async reads from, the resource tree rooted at *root*."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @classmethod
    def from_settings(cls, settings: SnappSettings, *, must_exist: bool = False) -> ResourceStore:
        """Build the store configured by ``SNAPP_RESOURCES_DIR``.

        Raises:
            ConfigError: with ``must_exist`` when the directory is missing.
        """
        root = settings.resources_dir
        if must_exist and not root.is_dir():
            raise ConfigError(f"Resources directory does not exist: {root}")
        return cls(root)

    # -- runtime bundle ------------------------------------------------------

    def variant_files_dir(self, variant: ResourceVariant) -> Path:
        return self.root / "snap" / variant.value / "files"

    def gui_script(self, variant: ResourceVariant) -> Path:
        return self.root / "snap" / variant.value / "gui" / "gui.js"

    # -- native runtime ------------------------------------------------------

    def native_dir(self, os: TargetOs) -> Path:
        return self.root / "nw" / os.value

    def mac_contents_dir(self, os: TargetOs) -> Path:
        return self.native_dir(os) / "Contents"

    def native_binary(self, os: TargetOs, name: str) -> Path:
        return self.native_dir(os) / "bin" / name

    def native_libs_dir(self, os: TargetOs) -> Path:
        return self.native_dir(os) / "lib"

    def linux_stub(self, os: TargetOs) -> Path:
        return self.native_binary(os, "nw")

    def windows_stub(self, os: TargetOs) -> Path:
        return self.native_dir(os) / "exe" / "nw.exe"

    # -- templates and icons -------------------------------------------------

    def info_plist_template(self, os: TargetOs) -> Path:
        return self.root / "conf" / os.value / "Info.plist"

    def launcher_template(self) -> Path:
        return self.root / "conf" / "linux" / "launcher.sh"

    def desktop_entry_template(self) -> Path:
        return self.root / "conf" / "linux" / "app.desktop"

    def icon(self, name: str) -> Path:
        return self.root / "icons" / name

    # -- reads ---------------------------------------------------------------

    def relative(self, path: Path) -> str:
        """*path* relative to the store root, for logs and error context."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    async def read_bytes(self, path: Path) -> bytes:
        """Read a binary resource (native stubs)."""
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise self._read_error(path, exc) from exc

    async def read_text(self, path: Path) -> str:
        """Read a UTF-8 text resource (scripts and templates)."""
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise self._read_error(path, exc) from exc

    def _read_error(self, path: Path, exc: Exception) -> ResourceReadError:
        relative = self.relative(path)
        errno = getattr(exc, "errno", None)
        logger.debug("resource.read_failed", path=relative, errno=errno)
        return ResourceReadError(f"Unable to read resource {relative}", path=relative, errno=errno, cause=exc)

    def __repr__(self) -> str:
        return f"ResourceStore(root={str(self.root)!r})"


def render_template(template: str, substitutions: dict[str, str]) -> str:
    """Replace every ``<placeholder>`` key of *substitutions* in *template*.

    All keys are replaced in one pass, so a substituted value is never
    itself scanned for placeholders.
    """
    if not substitutions:
        return template
    pattern = re.compile("|".join(re.escape(key) for key in sorted(substitutions, key=len, reverse=True)))
    return pattern.sub(lambda match: substitutions[match.group(0)], template)


__all__ = ["MAC_ICON", "WINDOW_ICON", "ResourceStore", "render_template"]
