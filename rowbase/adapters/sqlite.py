"""
SQLite adapter built on the standard library ``sqlite3`` module.

Generated ids are read from ``cursor.lastrowid`` after INSERT and whole-row
replaces use SQLite's native ``REPLACE INTO``. Statements outside an explicit
``transaction()`` block are committed as soon as they run.
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Generator, Sequence

from rowbase.adapters.base import DBAdapter, ExecutionResult, IdStrategy
from rowbase.utils.logging import get_logger

log = get_logger(__name__)


class SQLiteAdapter(DBAdapter):
    """
    Wrap a ``sqlite3.Connection``.

    Use ``SQLiteAdapter.connect(path)`` to open a database with the settings
    the engine expects (autocommit, ``sqlite3.Row`` rows, foreign keys on).
    """

    name = "sqlite"
    placeholder = "?"
    identifier_quote = '"'
    id_strategy = IdStrategy.LAST_INSERT_ID
    replace_verb = "REPLACE INTO"
    supports_delete_limit = False

    def __init__(self, connection: sqlite3.Connection) -> None:
        super().__init__()
        self._conn = connection
        self._in_transaction = False

    @classmethod
    def connect(cls, path: str = ":memory:") -> "SQLiteAdapter":
        if path != ":memory:" and os.path.isdir(path):
            raise ValueError(f"Path points to a directory, expected file: {path}")
        conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        log.debug("Opened SQLite database", extra={"path": path})
        return cls(conn)

    @property
    def raw_connection(self) -> sqlite3.Connection:
        return self._conn

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecutionResult:
        cur = self._conn.execute(sql, tuple(params))
        try:
            self._last_insert_id = cur.lastrowid
            result = ExecutionResult(row_count=cur.rowcount, last_insert_id=cur.lastrowid)
        finally:
            cur.close()
        if not self._in_transaction and self._conn.in_transaction:
            self._conn.commit()
        return result

    def query(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        return self._conn.execute(sql, tuple(params))

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        if self._in_transaction:
            yield
            return
        self._conn.execute("BEGIN")
        self._in_transaction = True
        try:
            yield
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()
        finally:
            self._in_transaction = False

    def close(self) -> None:
        self._conn.close()


__all__ = ["SQLiteAdapter"]
