"""
Minimal query value object: a table, equality AND clauses and a limit.

This is not a query builder; it renders exactly the DELETE and SELECT shapes
the record engine needs to address rows by primary key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from rowbase.adapters.base import DBAdapter


@dataclass
class Query:
    table: Optional[str] = None
    clauses: List[Tuple[str, Any]] = field(default_factory=list)
    limit: Optional[int] = None

    def set_table(self, table: str) -> "Query":
        self.table = table
        return self

    def add_and(self, column: str, value: Any) -> "Query":
        """Add ``column = value``; ``column`` is an unquoted name."""
        self.clauses.append((column, value))
        return self

    def set_limit(self, limit: Optional[int]) -> "Query":
        self.limit = limit
        return self

    def _where(self, conn: DBAdapter) -> Tuple[str, List[Any]]:
        if not self.clauses:
            return "", []
        parts = [f"{conn.quote_identifier(col)} = ?" for col, _ in self.clauses]
        return " WHERE " + " AND ".join(parts), [value for _, value in self.clauses]

    def _require_table(self) -> str:
        if not self.table:
            raise ValueError("Query has no table set")
        return self.table

    def delete_sql(self, conn: DBAdapter) -> Tuple[str, List[Any]]:
        table = conn.quote_identifier(self._require_table())
        where, params = self._where(conn)
        sql = f"DELETE FROM {table}{where}"
        if self.limit is not None and conn.supports_delete_limit:
            sql += f" LIMIT {int(self.limit)}"
        return sql, params

    def select_sql(self, conn: DBAdapter, columns: Optional[List[str]] = None) -> Tuple[str, List[Any]]:
        table = conn.quote_identifier(self._require_table())
        cols = ", ".join(conn.quote_identifier(c) for c in columns) if columns else "*"
        where, params = self._where(conn)
        sql = f"SELECT {cols} FROM {table}{where}"
        if self.limit is not None:
            sql += f" LIMIT {int(self.limit)}"
        return sql, params


__all__ = ["Query"]
