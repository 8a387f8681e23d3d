"""
Statement executor: a SQL string with ``?`` placeholders plus positional
parameters, bound and submitted to one adapter.

SQL is written with ``?`` everywhere in the engine; the placeholder is
rewritten to the adapter's paramstyle (``%s`` for psycopg) at execution time.
Driver exceptions propagate unchanged.
"""

from __future__ import annotations

import time
from typing import Any, Iterable, List, Optional, Sequence

from rowbase.adapters.base import DBAdapter, ExecutionResult
from rowbase.utils.logging import get_logger

log = get_logger(__name__)


def _convert_placeholders(sql: str, placeholder: str) -> str:
    """
    Replace ``?`` markers outside quoted strings/identifiers with ``placeholder``.

    For the ``%s`` paramstyle every literal ``%`` is doubled, quoted or not.
    """
    if placeholder == "?":
        return sql
    out: List[str] = []
    quote: Optional[str] = None
    for ch in sql:
        if ch == "%" and placeholder == "%s":
            out.append("%%")
        elif quote:
            if ch == quote:
                quote = None
            out.append(ch)
        elif ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append(placeholder)
        else:
            out.append(ch)
    return "".join(out)


class QueryStatement:
    """
    One executable statement bound to a connection.

    Example
    -------
        stmt = QueryStatement(conn, 'UPDATE "book" SET "title"=? WHERE "id"=?', ["x", 1])
        result = stmt.bind_and_execute()
        result.row_count
    """

    def __init__(
        self,
        conn: DBAdapter,
        sql: Optional[str] = None,
        params: Optional[Sequence[Any]] = None,
    ) -> None:
        self.conn = conn
        self._sql = sql or ""
        self._params: List[Any] = list(params or [])

    def set_string(self, sql: str) -> None:
        self._sql = sql

    def get_string(self) -> str:
        return self._sql

    def set_params(self, params: Sequence[Any]) -> None:
        self._params = list(params)

    def get_params(self) -> List[Any]:
        return list(self._params)

    def _bound_sql(self) -> str:
        expected = self._sql.count("?")
        if expected != len(self._params):
            log.warning(
                "Placeholder/parameter count mismatch",
                extra={"sql": self._sql, "placeholders": expected, "params": len(self._params)},
            )
        return _convert_placeholders(self._sql, self.conn.placeholder)

    def bind_and_execute(self) -> ExecutionResult:
        """Execute as a write statement and return the affected-row count."""
        sql = self._bound_sql()
        start = time.perf_counter()
        result = self.conn.execute(sql, self._params)
        log.debug(
            "Statement executed",
            extra={
                "sql": sql,
                "params": len(self._params),
                "rows": result.row_count,
                "duration_ms": round((time.perf_counter() - start) * 1000, 3),
            },
        )
        return result

    def bind_and_query(self) -> Iterable[Any]:
        """Execute as a SELECT and return the driver cursor."""
        sql = self._bound_sql()
        log.debug("Query executed", extra={"sql": sql, "params": len(self._params)})
        return self.conn.query(sql, self._params)

    def __str__(self) -> str:
        return self._sql


__all__ = ["QueryStatement"]
