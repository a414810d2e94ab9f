"""
Shared pytest fixtures for snapp-builder tests.

This module provides:
- A complete fake resource store laid out in ``tmp_path``
- Settings and a ResourceStore pointed at it
- Sample project documents
- Helpers to open finished archives

Usage:
    def test_something(store, settings, project_xml):
        ...
"""

from __future__ import annotations

import io
import stat
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

from snapp.core.settings import SnappSettings
from snapp.packaging.models import ExecutablePackage, PackageRequest, Resolution, TargetOs
from snapp.packaging.resources import ResourceStore

MAC_TARGETS = ("mac32", "mac64")
LINUX_TARGETS = ("lin32", "lin64")
WINDOWS_TARGETS = ("win32", "win64")

LINUX_STUB = b"\x7fELF-linux-stub"
WINDOWS_STUB = b"MZ-windows-stub"

PROJECT_XML = (
    '<project name="Pong" app="Snap! 4.0" version="1">\n'
    "  <notes>It's a \"game\"</notes>\n"
    '  <stage width="480" height="360"/>\n'
    "</project>"
)


def _write(path: Path, content: bytes | str, mode: int = 0o644) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)
    path.chmod(mode)


def build_resource_tree(root: Path) -> Path:
    """Lay out every resource the pipeline reads, for all six targets."""
    for variant in ("full", "reduced"):
        files = root / "snap" / variant / "files"
        _write(files / "snap.html", f"<html>{variant}</html>")
        _write(files / "morphic.js", f"// morphic {variant}")
        _write(root / "snap" / variant / "gui" / "gui.js", f"// gui {variant}")
    _write(root / "snap" / "full" / "files" / "libraries" / "LIBRARIES", "list\n")

    for os in MAC_TARGETS:
        native = root / "nw" / os
        _write(native / "Contents" / "PkgInfo", "APPL????")
        _write(native / "Contents" / "Resources" / "en.lproj" / "InfoPlist.strings", "CFBundleName = nwjs;")
        _write(native / "Contents" / "Frameworks" / "nwjs Framework.framework" / "nwjs Framework", b"\xca\xfe", 0o755)
        for binary in ("nwjs", "nwjs Helper", "nwjs Helper EH", "nwjs Helper NP"):
            _write(native / "bin" / binary, f"binary {binary}".encode(), 0o644)
        _write(
            root / "conf" / os / "Info.plist",
            "<plist><key>CFBundleDisplayName</key><string><filename></string>"
            "<key>CFBundleName</key><string><short_filename></string>"
            "<key>CFBundleExecutable</key><string><filename></string></plist>",
        )

    for os in LINUX_TARGETS:
        native = root / "nw" / os
        _write(native / "bin" / "nw", LINUX_STUB, 0o755)
        _write(native / "lib" / "nw.pak", b"pak")
        _write(native / "lib" / "lib" / "libffmpeg.so", b"so", 0o755)

    for os in WINDOWS_TARGETS:
        native = root / "nw" / os
        _write(native / "exe" / "nw.exe", WINDOWS_STUB)
        _write(native / "lib" / "nw.pak", b"pak")
        _write(native / "lib" / "ffmpeg.dll", b"dll", 0o755)

    _write(root / "conf" / "linux" / "launcher.sh", '#!/bin/sh\ncd "$(dirname "$0")"\nexec ./<filename> "$@"\n')
    _write(root / "conf" / "linux" / "app.desktop", "[Desktop Entry]\nName=<filename>\nExec=<filename>\n")
    _write(root / "icons" / "lambda.icns", b"icns")
    _write(root / "icons" / "lambda.png", b"\x89PNG")
    return root


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo logging configuration done by the CLI or app under test."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def resources_dir(tmp_path: Path) -> Path:
    """A complete resource store under ``tmp_path/resources``."""
    return build_resource_tree(tmp_path / "resources")


@pytest.fixture
def settings(resources_dir: Path) -> SnappSettings:
    return SnappSettings(_env_file=None, resources_dir=resources_dir, compression="stored")


@pytest.fixture
def store(resources_dir: Path) -> ResourceStore:
    return ResourceStore(resources_dir)


@pytest.fixture
def project_xml() -> str:
    return PROJECT_XML


@pytest.fixture
def project_file(tmp_path: Path) -> Path:
    path = tmp_path / "pong.xml"
    path.write_text(PROJECT_XML, encoding="utf-8")
    return path


@pytest.fixture
def make_request() -> Callable[..., PackageRequest]:
    """Factory for PackageRequest with sensible defaults."""

    def _make(
        os: TargetOs | str = TargetOs.LIN64,
        *,
        filename: str = "PongGame",
        project_xml: str = PROJECT_XML,
        resolution: Resolution = Resolution(1024, 768),
        use_complete_snap: bool = False,
    ) -> PackageRequest:
        return PackageRequest(
            filename=filename,
            project_xml=project_xml,
            os=os,
            resolution=resolution,
            use_complete_snap=use_complete_snap,
        )

    return _make


# =============================================================================
# Archive helpers
# =============================================================================


def open_package(package: ExecutablePackage) -> zipfile.ZipFile:
    """Read a finished package into an in-memory ZipFile."""
    return zipfile.ZipFile(io.BytesIO(b"".join(package.iter_chunks())))


def entry_mode(zf: zipfile.ZipFile, name: str) -> int:
    return stat.S_IMODE(zf.getinfo(name).external_attr >> 16)


def inner_archive(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


@pytest.fixture
def unpack() -> Callable[[ExecutablePackage], zipfile.ZipFile]:
    return open_package


@pytest.fixture
def mode_of() -> Callable[[zipfile.ZipFile, str], int]:
    return entry_mode


@pytest.fixture
def unpack_inner() -> Callable[[bytes], zipfile.ZipFile]:
    return inner_archive


@pytest.fixture
def stubs() -> dict[str, bytes]:
    return {"linux": LINUX_STUB, "windows": WINDOWS_STUB}
