"""Tests for snapp.packaging.models."""

import io

import pytest

from snapp.core.errors import InvalidTransitionError, StreamError
from snapp.packaging.models import (
    PACKAGING_VALID_TRANSITIONS,
    ExecutablePackage,
    OsFamily,
    PackageRequest,
    PackagingState,
    Resolution,
    ResolutionFormatError,
    ResourceVariant,
    TargetOs,
    os_family,
    validate_packaging_transition,
)


class TestTargetOs:
    @pytest.mark.parametrize(
        "os, family",
        [
            ("mac32", OsFamily.MAC),
            ("mac64", OsFamily.MAC),
            ("lin32", OsFamily.LINUX),
            ("lin64", OsFamily.LINUX),
            ("win32", OsFamily.WINDOWS),
            ("win64", OsFamily.WINDOWS),
        ],
    )
    def test_family(self, os, family):
        assert TargetOs(os).family is family
        assert os_family(os) is family

    def test_unknown_os_has_no_family(self):
        assert os_family("bogus") is None
        assert os_family("") is None


class TestResolution:
    def test_from_string(self):
        res = Resolution.from_string("800x600")
        assert (res.width, res.height) == (800, 600)

    def test_from_string_tolerates_spaces_and_upper_x(self):
        assert Resolution.from_string(" 1024 X 768 ") == Resolution(1024, 768)

    @pytest.mark.parametrize("value", ["", "800", "800x", "x600", "800x600x2", "800*600", "-800x600", "a x b"])
    def test_invalid_strings(self, value):
        with pytest.raises(ResolutionFormatError):
            Resolution.from_string(value)

    def test_zero_dimension_rejected(self):
        with pytest.raises(ResolutionFormatError):
            Resolution.from_string("0x600")

    def test_is_a_value_error(self):
        assert issubclass(ResolutionFormatError, ValueError)

    def test_str(self):
        assert str(Resolution(640, 480)) == "640x480"


class TestPackageRequest:
    def test_variant_follows_use_complete_snap(self):
        base = dict(filename="f", project_xml="<project name='a'/>", os=TargetOs.LIN64, resolution=Resolution(1, 1))
        assert PackageRequest(**base, use_complete_snap=True).variant is ResourceVariant.FULL
        assert PackageRequest(**base).variant is ResourceVariant.REDUCED

    def test_is_immutable(self, make_request):
        request = make_request()
        with pytest.raises(AttributeError):
            request.filename = "other"


class TestPackagingTransitions:
    def test_happy_path_is_valid(self):
        path = [
            PackagingState.IDLE,
            PackagingState.EXTRACTING_NAME,
            PackagingState.COMPOSING_RUNTIME,
            PackagingState.DRAINING_RUNTIME,
            PackagingState.COMPOSING_FINAL,
            PackagingState.EMBEDDING_PAYLOAD,
            PackagingState.FINALIZING,
            PackagingState.DONE,
        ]
        for current, target in zip(path, path[1:]):
            validate_packaging_transition(current, target)

    def test_every_non_terminal_state_can_fail(self):
        for state in PackagingState:
            if not state.is_terminal:
                assert PackagingState.FAILED in PACKAGING_VALID_TRANSITIONS[state]

    def test_terminal_states_have_no_exits(self):
        assert PACKAGING_VALID_TRANSITIONS[PackagingState.DONE] == frozenset()
        assert PACKAGING_VALID_TRANSITIONS[PackagingState.FAILED] == frozenset()

    def test_skipping_the_drain_is_illegal(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_packaging_transition(PackagingState.COMPOSING_RUNTIME, PackagingState.EMBEDDING_PAYLOAD)
        assert exc_info.value.code == "INVALID_TRANSITION"
        assert "composing_runtime" in exc_info.value.message

    def test_done_cannot_fail(self):
        with pytest.raises(InvalidTransitionError):
            validate_packaging_transition(PackagingState.DONE, PackagingState.FAILED)


class TestExecutablePackage:
    def _package(self, data: bytes = b"PK-data") -> ExecutablePackage:
        return ExecutablePackage(
            io.BytesIO(data),
            request_id="req-1",
            project_name="Pong",
            filename="PongGame",
            os="lin64",
            size=len(data),
            entry_names=("a", "b"),
        )

    def test_archive_name_and_media_type(self):
        package = self._package()
        assert package.archive_name == "PongGame.zip"
        assert package.media_type == "application/zip"

    def test_open_once(self):
        package = self._package()
        assert package.open().read() == b"PK-data"
        assert package.consumed
        with pytest.raises(StreamError) as exc_info:
            package.open()
        assert exc_info.value.context.request_id == "req-1"

    def test_iter_chunks_streams_everything_and_closes(self):
        package = self._package(b"x" * 10)
        chunks = list(package.iter_chunks(chunk_size=4))
        assert chunks == [b"xxxx", b"xxxx", b"xx"]
        with pytest.raises(StreamError):
            list(package.iter_chunks())
