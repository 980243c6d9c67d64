"""CLI command for creating the database schema.

Usage:
    cacheside init-db
"""

from __future__ import annotations

import asyncio

import typer

from cacheside.persistence.db import close_db, init_db

app = typer.Typer(help="Create the database tables")


async def _create_tables() -> None:
    try:
        await init_db()
    finally:
        await close_db()


@app.callback(invoke_without_command=True)
def create_tables() -> None:
    """Create any missing tables in the configured database."""
    try:
        asyncio.run(_create_tables())
    except Exception as e:
        typer.echo(f"Error: could not create tables: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo("Database tables created.")
