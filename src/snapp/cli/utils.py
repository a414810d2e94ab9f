"""
CLI utility helpers — consoles, error reporting, settings overrides.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console

from snapp.core.errors import SnappError
from snapp.core.logging import configure_logging
from snapp.core.settings import SnappSettings

console = Console()
err_console = Console(stderr=True)


def load_settings(**overrides: Any) -> SnappSettings:
    """Settings from the environment, with non-``None`` CLI overrides applied."""
    return SnappSettings(**{key: value for key, value in overrides.items() if value is not None})


def setup_logging(settings: SnappSettings, level: str | None = None) -> None:
    """Log to stderr so stdout stays clean for ``--json`` output."""
    configure_logging(
        level=level or settings.log_level,
        json_format=settings.log_json,
        stream=sys.stderr,
        cache_loggers=False,
    )


def fail(error: SnappError) -> NoReturn:
    """Print a snapp error the way the HTTP API reports it, then exit 1."""
    err_console.print(f"[bold red]Error[/bold red] ({error.code}): {error.message}")
    if error.context.path:
        err_console.print(f"  [dim]path:[/dim] {error.context.path}")
    raise typer.Exit(code=1)


def human_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def default_output(filename: str, directory: Path | None = None) -> Path:
    return (directory or Path.cwd()) / f"{filename}.zip"
