"""
Root Typer application for the snapp CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from snapp import __version__

app = Typer(
    name="snapp",
    help="snapp — package visual-programming projects into desktop executables.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"snapp-builder {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """snapp CLI — build, inspect and serve executable packages."""


# ── Command registration ─────────────────────────────────────────────────

from snapp.cli.build import build, inspect  # noqa: E402
from snapp.cli.serve import serve  # noqa: E402

app.command("build")(build)
app.command("inspect")(inspect)
app.command("serve")(serve)
