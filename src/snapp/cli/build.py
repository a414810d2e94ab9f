"""
CLI: ``snapp build`` and ``snapp inspect`` — package a project file and look
inside the result.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import stat
import zipfile
from pathlib import Path

import typer
from rich.table import Table

from snapp.cli.utils import console, default_output, fail, human_size, load_settings, setup_logging
from snapp.core.errors import SnappError, StreamError
from snapp.packaging.models import ExecutablePackage
from snapp.packaging.service import ExecutableService


def build(
    project: Path = typer.Argument(..., help="Project XML file"),
    os: str = typer.Option(..., "--os", help="mac32, mac64, lin32, lin64, win32 or win64"),
    resolution: str = typer.Option("800x600", "--resolution", "-r", help="Window size, WIDTHxHEIGHT"),
    filename: str | None = typer.Option(None, "--filename", "-f", help="Output name (default: project file stem)"),
    complete: bool = typer.Option(False, "--complete", help="Package the full resource tree"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Archive path (default: ./<filename>.zip)"),
    resources: Path | None = typer.Option(None, "--resources", help="Resource store directory"),
    log_level: str | None = typer.Option(None, "--log-level", help="Override SNAPP_LOG_LEVEL"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Package PROJECT into an executable archive for one target OS."""
    try:
        settings = load_settings(resources_dir=resources)
        setup_logging(settings, log_level)
        service = ExecutableService.from_settings(settings, must_exist=True)
        name = filename or project.stem
        params = {
            "filename": name,
            "os": os,
            "resolution": resolution,
            "useCompleteSnap": complete,
        }
        package = asyncio.run(service.generate(params, project_path=project))
        destination = output or default_output(name)
        _write_package(package, destination)
    except SnappError as exc:
        fail(exc)

    summary = {
        "archive": str(destination),
        "project_name": package.project_name,
        "os": package.os,
        "entries": len(package.entry_names),
        "size": package.size,
    }
    if json_out:
        console.print_json(json.dumps(summary))
        return
    console.print(
        f"[bold green]Built[/bold green] {destination} "
        f"([cyan]{package.os}[/cyan], {len(package.entry_names)} entries, {human_size(package.size)})"
    )


def _write_package(package: ExecutablePackage, destination: Path) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with package.open() as source, destination.open("wb") as target:
            shutil.copyfileobj(source, target)
    except OSError as exc:
        raise StreamError(f"Unable to write {destination}: {exc}", cause=exc).with_context(
            path=str(destination)
        ) from exc


def inspect(
    archive: Path = typer.Argument(..., help="Archive produced by 'snapp build'"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List the entries of ARCHIVE with their unix modes."""
    try:
        with zipfile.ZipFile(archive) as zf:
            entries = [
                {
                    "name": info.filename,
                    "mode": oct(stat.S_IMODE(info.external_attr >> 16)),
                    "size": info.file_size,
                }
                for info in zf.infolist()
            ]
    except (OSError, zipfile.BadZipFile) as exc:
        fail(StreamError(f"Unable to read archive {archive}: {exc}", cause=exc).with_context(path=str(archive)))

    if json_out:
        console.print_json(json.dumps(entries))
        return

    table = Table(title=str(archive), show_lines=False, pad_edge=False)
    table.add_column("mode", style="cyan")
    table.add_column("size", justify="right")
    table.add_column("name", overflow="fold")
    for entry in entries:
        table.add_row(entry["mode"], str(entry["size"]), entry["name"])
    console.print(table)
    console.print(f"\n[dim]{len(entries)} entries[/dim]")
