"""
Connection factory utilities for rowbase.

Builds backend adapters from Settings and registers them at process start.
Opening a PostgreSQL session retries transient connection failures using
tenacity; statements executed afterwards are never retried.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection, sql
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from rowbase.adapters.base import DBAdapter
from rowbase.adapters.postgres import PostgresAdapter
from rowbase.adapters.sqlite import SQLiteAdapter
from rowbase.config import Settings, get_settings
from rowbase.infrastructure.registry import ConnectionRegistry, default_registry
from rowbase.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a PostgreSQL DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def apply_statement_timeout(cur: psycopg.Cursor, timeout_ms: int) -> None:
    """
    Set a per-session statement timeout. 0 leaves the server default.
    """
    if timeout_ms <= 0:
        return
    cur.execute(sql.SQL("SET statement_timeout = {}").format(sql.Literal(int(timeout_ms))))


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated autocommit psycopg connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Parameters
    ----------
    dsn : str, optional
        Connection string; defaults to the one built from settings.

    Returns
    -------
    Connection
        A new psycopg connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn(), autocommit=True)


def create_adapter(settings: Optional[Settings] = None) -> DBAdapter:
    """
    Open the backend selected by ``settings.db_backend``.
    """
    settings = settings or get_settings()
    if settings.db_backend == "postgres":
        conn = get_sync_connection(build_dsn(settings))
        with conn.cursor() as cur:
            apply_statement_timeout(cur, settings.db_statement_timeout_ms)
        log.info(
            "Connected to PostgreSQL",
            extra={"host": settings.db_host, "port": settings.db_port, "db": settings.db_name},
        )
        return PostgresAdapter(conn)
    adapter = SQLiteAdapter.connect(settings.sqlite_path)
    log.info("Connected to SQLite", extra={"path": settings.sqlite_path})
    return adapter


def bootstrap_registry(
    settings: Optional[Settings] = None,
    registry: Optional[ConnectionRegistry] = None,
) -> ConnectionRegistry:
    """
    Register the configured connection under ``settings.default_connection``
    (or the backend name) and return the registry.

    Hosts call this once at startup before any record is saved or loaded.
    """
    settings = settings or get_settings()
    registry = registry if registry is not None else default_registry()
    name = settings.default_connection or settings.db_backend
    registry.add_connection(name, create_adapter(settings))
    return registry


__all__ = [
    "apply_statement_timeout",
    "bootstrap_registry",
    "build_dsn",
    "create_adapter",
    "get_sync_connection",
]
