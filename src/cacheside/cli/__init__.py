"""CLI commands for Cacheside.

- cacheside serve: Run the API server
- cacheside init-db: Create the database tables

Usage:
    cacheside --help
    cacheside serve --port 8080
    cacheside init-db
"""

import typer

from cacheside.cli.db_cmd import app as db_app
from cacheside.cli.serve import app as serve_app

app = typer.Typer(
    name="cacheside",
    help="Cacheside: cache-aside customer API over Redis and PostgreSQL",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(db_app, name="init-db")


@app.callback()
def callback() -> None:
    """Cacheside: cache-aside customer API over Redis and PostgreSQL."""


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
