"""
PostgreSQL adapter built on psycopg 3.

PostgreSQL has no ``LAST_INSERT_ID()``; the id generated for a serial/identity
column is read back from the column's sequence with ``currval``. It also has
no ``REPLACE``, so whole-row replaces of key-less tables are plain INSERTs.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Sequence

import psycopg
from psycopg import Connection

from rowbase.adapters.base import DBAdapter, ExecutionResult, IdStrategy
from rowbase.utils.logging import get_logger

log = get_logger(__name__)


class PostgresAdapter(DBAdapter):
    """
    Wrap an autocommit ``psycopg.Connection``.
    """

    name = "postgres"
    placeholder = "%s"
    identifier_quote = '"'
    id_strategy = IdStrategy.SEQUENCE
    replace_verb = "INSERT INTO"
    supports_delete_limit = False

    def __init__(self, connection: Connection) -> None:
        super().__init__()
        self._conn = connection

    @property
    def raw_connection(self) -> Connection:
        return self._conn

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecutionResult:
        with self._conn.cursor() as cur:
            cur.execute(sql, tuple(params))
            return ExecutionResult(row_count=cur.rowcount)

    def query(self, sql: str, params: Sequence[Any] = ()) -> psycopg.Cursor:
        cur = self._conn.cursor()
        cur.execute(sql, tuple(params))
        return cur

    def get_id(self, table_name: str, column_name: str) -> Any:
        with self._conn.cursor() as cur:
            cur.execute(
                "SELECT currval(pg_get_serial_sequence(%s, %s))",
                (self.quote_identifier(table_name), column_name),
            )
            row = cur.fetchone()
        self._last_insert_id = row[0] if row else None
        return self._last_insert_id

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        with self._conn.transaction():
            yield

    def close(self) -> None:
        self._conn.close()


__all__ = ["PostgresAdapter"]
