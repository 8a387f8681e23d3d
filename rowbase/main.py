from __future__ import annotations

import sys

import typer

from rowbase.config import get_settings
from rowbase.domain.statement import QueryStatement
from rowbase.infrastructure.db_factory import bootstrap_registry
from rowbase.infrastructure.registry import ConnectionRegistry
from rowbase.utils.logging import configure_logging

app = typer.Typer(help="rowbase persistence engine CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    if settings.db_backend == "postgres":
        target = f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    else:
        target = settings.sqlite_path
    typer.echo(
        f"backend={settings.db_backend} DB={target} | "
        f"connection={settings.default_connection or settings.db_backend} "
        f"pool_size={settings.identity_pool_size} format_dates={settings.format_dates}"
    )


@app.command()
def check() -> None:
    """
    Open the configured connection and run a trivial query.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    registry = bootstrap_registry(settings, ConnectionRegistry())
    try:
        conn = registry.get_connection()
        row = next(iter(QueryStatement(conn, "SELECT 1").bind_and_query()))
        typer.echo(f"{conn.name}: OK ({row[0]})")
    finally:
        registry.clear()


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
