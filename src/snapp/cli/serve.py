"""
CLI: ``snapp serve`` — start the API server.
"""

from __future__ import annotations

import typer

from snapp.cli.utils import console, load_settings


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address (default: SNAPP_HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port (default: SNAPP_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of workers"),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Start the snapp-builder REST API server."""
    import uvicorn

    settings = load_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(f"[bold green]Starting snapp-builder API[/bold green] on {host}:{port}")
    uvicorn.run(
        "snapp.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )
