"""Runtime manifest and bootstrap script.

Pure, in-memory builders for the two generated entries of the runtime
bundle:

- ``package.json``: the runtime manifest (:func:`build_manifest`)
- ``gui.js``: the base GUI script plus platform snippets and the embedded
  project payload (:func:`build_bootstrap_script`)

Nothing here performs I/O except loading the two platform snippets, which
ship as package data (``snippets/*.js``) and are cached after first use.
"""

from __future__ import annotations

import json
from functools import cache
from importlib import resources

from snapp.packaging.models import OsFamily, Resolution, TargetOs, os_family

APP_IDENTIFIER = "snapapp"
MAIN_ENTRY = "snap.html"
WINDOW_ICON = "lambda.png"

PROJECT_NAME_PLACEHOLDER = "<project_name>"
PAYLOAD_PROPERTY = "IDE_Morph.prototype.snapproject"

MAC_MENU_SNIPPET = "mac_menu.js"
WINDOWS_FULLSCREEN_SNIPPET = "win_fullscreen.js"

# Targets whose runtime runs with node integration enabled.
NODE_MODE_FAMILIES = frozenset({OsFamily.MAC, OsFamily.WINDOWS})


def needs_node_mode(os: TargetOs | str) -> bool:
    """``nodejs`` manifest flag: on for mac and windows targets, off for linux."""
    return os_family(os) in NODE_MODE_FAMILIES


def build_manifest(os: TargetOs | str, project_name: str, resolution: Resolution) -> str:
    """Runtime manifest as compact JSON.

    The window title is the project name; width and height come from the
    requested resolution. Everything else is fixed.
    """
    manifest = {
        "name": APP_IDENTIFIER,
        "main": MAIN_ENTRY,
        "nodejs": needs_node_mode(os),
        "single-instance": True,
        "window": {
            "icon": WINDOW_ICON,
            "title": project_name,
            "toolbar": False,
            "resizable": True,
            "width": resolution.width,
            "height": resolution.height,
        },
    }
    return json.dumps(manifest, separators=(",", ":"), ensure_ascii=False)


def escape_js_string(value: str) -> str:
    """Make *value* safe inside a single-quoted JavaScript string literal.

    Line breaks are removed, backslashes and single quotes are escaped.
    """
    value = value.replace("\r\n", "").replace("\n", "").replace("\r", "")
    return value.replace("\\", "\\\\").replace("'", "\\'")


def escape_project_payload(project_xml: str) -> str:
    """Project XML escaped for embedding in the bootstrap script."""
    return escape_js_string(project_xml)


@cache
def load_snippet(name: str) -> str:
    """Platform snippet shipped in ``snapp/packaging/snippets``."""
    return (resources.files("snapp.packaging") / "snippets" / name).read_text(encoding="utf-8")


def build_bootstrap_script(
    base_script: str,
    os: TargetOs | str,
    escaped_payload: str,
    *,
    project_name: str,
) -> str:
    """Compose ``gui.js``.

    Order: base GUI script, the mac menu/shortcut snippet (mac targets, with
    the project name substituted) or the fullscreen shortcut snippet (windows
    targets), then the assignment of the escaped payload to
    ``IDE_Morph.prototype.snapproject``. Linux targets get no snippet.
    """
    family = os_family(os)
    parts = [base_script, "\n"]
    if family is OsFamily.MAC:
        snippet = load_snippet(MAC_MENU_SNIPPET)
        parts += [snippet.replace(PROJECT_NAME_PLACEHOLDER, escape_js_string(project_name)), "\n"]
    elif family is OsFamily.WINDOWS:
        parts += [load_snippet(WINDOWS_FULLSCREEN_SNIPPET), "\n"]
    parts.append(f"{PAYLOAD_PROPERTY} = '{escaped_payload}';")
    return "".join(parts)


__all__ = [
    "APP_IDENTIFIER",
    "MAIN_ENTRY",
    "NODE_MODE_FAMILIES",
    "PAYLOAD_PROPERTY",
    "build_bootstrap_script",
    "build_manifest",
    "escape_js_string",
    "escape_project_payload",
    "load_snippet",
    "needs_node_mode",
]
