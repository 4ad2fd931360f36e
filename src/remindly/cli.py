"""CLI entry point for the Remindly server."""

from __future__ import annotations

import click
import uvicorn

from remindly.api import create_app
from remindly.config import get_settings
from remindly.logging import setup_logging

LOG_LEVELS = ("debug", "info", "warning", "error")


@click.group()
@click.version_option(package_name="remindly")
def main() -> None:
    """Remindly - shared reminders for admins and students."""
    pass


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@click.option("--port", default=8000, type=int, show_default=True, help="Port to listen on")
@click.option(
    "--db",
    "db_path",
    default=None,
    help="SQLite database path (defaults to REMINDLY_DB_PATH or remindly.db)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="info",
    show_default=True,
    help="Log level for the remindly loggers",
)
def serve(host: str, port: int, db_path: str | None, log_level: str) -> None:
    """Run the REST API with uvicorn."""
    setup_logging(level=log_level)
    settings = get_settings()
    app = create_app(db_path=db_path, settings=settings)

    click.echo(f"Serving Remindly on http://{host}:{port} (db: {db_path or settings.db_path})")
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    main()
