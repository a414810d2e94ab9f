"""Tests for snapp.packaging.manifest — package.json and gui.js builders."""

import json

import pytest

from snapp.packaging.manifest import (
    PAYLOAD_PROPERTY,
    build_bootstrap_script,
    build_manifest,
    escape_js_string,
    escape_project_payload,
    load_snippet,
    needs_node_mode,
)
from snapp.packaging.models import Resolution, TargetOs


class TestBuildManifest:
    def test_key_order_and_values(self):
        manifest = build_manifest(TargetOs.MAC64, "Pong", Resolution(800, 600))
        assert manifest == (
            '{"name":"snapapp","main":"snap.html","nodejs":true,"single-instance":true,'
            '"window":{"icon":"lambda.png","title":"Pong","toolbar":false,"resizable":true,'
            '"width":800,"height":600}}'
        )

    def test_title_round_trips_the_project_name(self):
        name = 'Quote "and" ünïcode'
        manifest = json.loads(build_manifest(TargetOs.WIN32, name, Resolution(1, 2)))
        assert manifest["window"]["title"] == name
        assert (manifest["window"]["width"], manifest["window"]["height"]) == (1, 2)

    @pytest.mark.parametrize(
        "os, expected",
        [("mac32", True), ("mac64", True), ("win32", True), ("win64", True), ("lin32", False), ("lin64", False)],
    )
    def test_nodejs_flag(self, os, expected):
        assert needs_node_mode(os) is expected
        assert json.loads(build_manifest(os, "P", Resolution(10, 10)))["nodejs"] is expected

    def test_unknown_os_runs_without_node(self):
        assert needs_node_mode("bogus") is False

    def test_is_deterministic(self):
        args = (TargetOs.LIN64, "Pong", Resolution(640, 480))
        assert build_manifest(*args) == build_manifest(*args)


class TestEscaping:
    def test_line_breaks_are_removed(self):
        assert escape_js_string("a\r\nb\nc\rd") == "abcd"

    def test_quotes_and_backslashes_are_escaped(self):
        assert escape_js_string("it's a \\ path") == "it\\'s a \\\\ path"

    def test_double_quotes_are_untouched(self):
        assert escape_js_string('say "hi"') == 'say "hi"'

    def test_project_payload(self, project_xml):
        escaped = escape_project_payload(project_xml)
        assert "\n" not in escaped
        assert "It\\'s" in escaped


class TestBootstrapScript:
    def test_linux_has_no_snippet(self):
        script = build_bootstrap_script("// base", TargetOs.LIN64, "PAYLOAD", project_name="Pong")
        assert script == f"// base\n{PAYLOAD_PROPERTY} = 'PAYLOAD';"

    def test_mac_gets_the_menu_snippet_with_the_project_name(self):
        script = build_bootstrap_script("// base", TargetOs.MAC64, "PAYLOAD", project_name="Pong")
        snippet = load_snippet("mac_menu.js").replace("<project_name>", "Pong")
        assert script == f"// base\n{snippet}\n{PAYLOAD_PROPERTY} = 'PAYLOAD';"
        assert "createMacBuiltin('Pong'" in script
        assert "<project_name>" not in script

    def test_mac_project_name_is_escaped(self):
        script = build_bootstrap_script("", TargetOs.MAC32, "", project_name="Bob's")
        assert "createMacBuiltin('Bob\\'s'" in script

    def test_windows_gets_the_fullscreen_snippet(self):
        script = build_bootstrap_script("// base", TargetOs.WIN32, "PAYLOAD", project_name="Pong")
        snippet = load_snippet("win_fullscreen.js")
        assert script == f"// base\n{snippet}\n{PAYLOAD_PROPERTY} = 'PAYLOAD';"
        assert "toggleFullscreen" in script
        assert "createMacBuiltin" not in script

    def test_payload_is_the_last_statement(self, project_xml):
        payload = escape_project_payload(project_xml)
        script = build_bootstrap_script("// base", TargetOs.LIN32, payload, project_name="Pong")
        assert script.endswith(f"IDE_Morph.prototype.snapproject = '{payload}';")

    def test_is_deterministic(self, project_xml):
        payload = escape_project_payload(project_xml)
        first = build_bootstrap_script("// base", TargetOs.MAC64, payload, project_name="Pong")
        second = build_bootstrap_script("// base", TargetOs.MAC64, payload, project_name="Pong")
        assert first == second
