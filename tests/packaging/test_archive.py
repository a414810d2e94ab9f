"""Tests for snapp.packaging.archive.ArchiveBuilder."""

import asyncio
import io
import stat
import zipfile

import pytest

from snapp.core.errors import ResourceReadError, StreamError
from snapp.packaging.archive import (
    DEFAULT_FILE_MODE,
    UNIX_EXECUTABLE_MODE,
    ArchiveBuilder,
    join_entry,
    normalize_entry_name,
)


def _modes(data: bytes) -> dict[str, int]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {info.filename: stat.S_IMODE(info.external_attr >> 16) for info in zf.infolist()}


class TestEntryNames:
    def test_join_entry(self):
        assert join_entry("Pong.app", "Contents", "Info.plist") == "Pong.app/Contents/Info.plist"
        assert join_entry("", "gui.js") == "gui.js"
        assert join_entry("root/", "/lib") == "root/lib"

    @pytest.mark.parametrize("name", ["", "/etc/passwd", "../escape", "a/../../b", "."])
    def test_unsafe_names_rejected(self, name):
        with pytest.raises(StreamError) as exc_info:
            normalize_entry_name(name)
        assert exc_info.value.code == "UNSAFE_ENTRY_NAME"

    def test_backslashes_become_slashes(self):
        assert normalize_entry_name("dir\\file.txt") == "dir/file.txt"


class TestArchiveBuilder:
    @pytest.mark.asyncio
    async def test_append_and_drain(self):
        archive = ArchiveBuilder("test")
        archive.append("hello", "greeting.txt")
        archive.append(b"\x00\x01", "bin/data", mode=UNIX_EXECUTABLE_MODE)
        await archive.finalize()
        data = await archive.drain()

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.read("greeting.txt") == b"hello"
            assert zf.read("bin/data") == b"\x00\x01"
        assert _modes(data) == {"greeting.txt": DEFAULT_FILE_MODE, "bin/data": UNIX_EXECUTABLE_MODE}

    @pytest.mark.asyncio
    async def test_size_is_the_finalized_length(self):
        archive = ArchiveBuilder("test")
        archive.append("x", "x")
        await archive.finalize()
        size = archive.size
        assert len(await archive.drain()) == size

    def test_duplicate_entry_rejected(self):
        archive = ArchiveBuilder("test")
        archive.append("a", "same")
        with pytest.raises(StreamError) as exc_info:
            archive.append("b", "same")
        assert exc_info.value.code == "DUPLICATE_ENTRY"
        archive.discard()

    @pytest.mark.asyncio
    async def test_no_entries_after_finalize(self):
        archive = ArchiveBuilder("test")
        await archive.finalize()
        with pytest.raises(StreamError):
            archive.append("late", "late.txt")

    @pytest.mark.asyncio
    async def test_no_reads_before_finalize(self):
        archive = ArchiveBuilder("test")
        archive.append("x", "x")
        with pytest.raises(StreamError):
            await archive.drain()
        with pytest.raises(StreamError):
            _ = archive.size
        archive.discard()

    @pytest.mark.asyncio
    async def test_stream_can_only_be_taken_once(self):
        archive = ArchiveBuilder("test")
        await archive.finalize()
        archive.open_stream().close()
        with pytest.raises(StreamError):
            archive.open_stream()

    def test_unknown_compression(self):
        with pytest.raises(StreamError):
            ArchiveBuilder("test", compression="lzma")

    @pytest.mark.asyncio
    async def test_add_file_missing_source(self, tmp_path):
        archive = ArchiveBuilder("test")
        with pytest.raises(ResourceReadError) as exc_info:
            await archive.add_file(tmp_path / "missing.bin", "missing.bin")
        assert exc_info.value.errno is not None
        # a failed read does not claim the name
        archive.append("ok", "missing.bin")
        archive.discard()

    @pytest.mark.asyncio
    async def test_add_directory_sorted_with_modes(self, tmp_path):
        source = tmp_path / "tree"
        (source / "b").mkdir(parents=True)
        (source / "z.txt").write_text("z")
        (source / "a.sh").write_text("#!/bin/sh")
        (source / "a.sh").chmod(0o755)
        (source / "b" / "c.txt").write_text("c")
        (source / "z.txt").chmod(0o644)
        (source / "b" / "c.txt").chmod(0o644)

        archive = ArchiveBuilder("test")
        count = await archive.add_directory(source, "root", preserve_modes=True)
        assert count == 3
        assert archive.entry_names == ("root/a.sh", "root/z.txt", "root/b/c.txt")
        await archive.finalize()
        modes = _modes(await archive.drain())
        assert modes["root/a.sh"] == 0o755
        assert modes["root/z.txt"] == 0o644

    @pytest.mark.asyncio
    async def test_add_directory_without_modes_is_not_executable(self, tmp_path):
        source = tmp_path / "tree"
        source.mkdir()
        (source / "run.exe").write_bytes(b"MZ")
        (source / "run.exe").chmod(0o755)

        archive = ArchiveBuilder("test")
        await archive.add_directory(source, "")
        await archive.finalize()
        assert _modes(await archive.drain()) == {"run.exe": DEFAULT_FILE_MODE}

    @pytest.mark.asyncio
    async def test_add_directory_missing_source(self, tmp_path):
        archive = ArchiveBuilder("test")
        with pytest.raises(ResourceReadError):
            await archive.add_directory(tmp_path / "nope", "x")
        archive.discard()

    @pytest.mark.asyncio
    async def test_concurrent_writers_interleave_safely(self, tmp_path):
        for name in ("one", "two"):
            tree = tmp_path / name
            tree.mkdir()
            for i in range(5):
                (tree / f"{name}-{i}.txt").write_text(f"{name}{i}")

        archive = ArchiveBuilder("test")
        await asyncio.gather(
            archive.add_directory(tmp_path / "one", "one"),
            archive.add_directory(tmp_path / "two", "two"),
        )
        await archive.finalize()
        with zipfile.ZipFile(io.BytesIO(await archive.drain())) as zf:
            assert zf.testzip() is None
            assert len(zf.namelist()) == 10
            assert zf.read("two/two-3.txt") == b"two3"

    def test_discard_is_idempotent(self):
        archive = ArchiveBuilder("test")
        archive.append("x", "x")
        archive.discard()
        archive.discard()
        assert archive.finalized
