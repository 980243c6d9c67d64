"""CLI command for running the API server.

Usage:
    cacheside serve
    cacheside serve --port 8080 --host 0.0.0.0
    cacheside serve --reload --log-level debug
"""

from __future__ import annotations

import typer
import uvicorn

from cacheside.config import settings

app = typer.Typer(help="Run the Cacheside API server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(settings.host, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(
        False, "--reload", "-r", help="Enable auto-reload for development"
    ),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of worker processes"),
    log_level: str = typer.Option(
        "info", "--log-level", "-l", help="Log level: debug, info, warning, error"
    ),
) -> None:
    """Run the Cacheside API server under uvicorn."""
    # Reload needs a single worker
    workers_effective = 1 if reload else workers

    typer.echo(f"Starting Cacheside on {host}:{port} ({workers_effective} worker(s))")
    typer.echo(f"API documentation: http://{host}:{port}/docs")

    uvicorn.run(
        app="cacheside.api.app:create_app",
        factory=True,
        loop="uvloop",
        host=host,
        port=port,
        reload=reload,
        workers=workers_effective,
        log_level=log_level.lower(),
    )
