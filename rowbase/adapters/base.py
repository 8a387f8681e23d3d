"""
Connection contract shared by every backend adapter.

An adapter wraps one DB-API session and owns the parts of SQL generation that
differ between backends: identifier quoting, the bind placeholder, how a
generated primary key is read back after INSERT, and which verb performs a
whole-row replace. Concrete adapters live next to this module.
"""

from __future__ import annotations

import abc
import enum
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generator, Iterable, Optional, Sequence


class IdStrategy(str, enum.Enum):
    """How a generated primary key is retrieved after INSERT."""

    SEQUENCE = "sequence"
    LAST_INSERT_ID = "last_insert_id"
    NONE = "none"


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of a write statement.

    Attributes
    ----------
    row_count : int
        Rows affected as reported by the driver (-1 when unknown).
    last_insert_id : Any
        Driver-reported id of the last inserted row, if the backend has one.
    """

    row_count: int
    last_insert_id: Any = None


class DBAdapter(abc.ABC):
    """
    Base class for backend sessions.

    Subclasses set the class attributes below and implement ``execute``,
    ``query`` and ``transaction``.
    """

    name: str = "generic"
    placeholder: str = "?"
    identifier_quote: str = '"'
    id_strategy: IdStrategy = IdStrategy.LAST_INSERT_ID
    replace_verb: str = "REPLACE INTO"
    supports_delete_limit: bool = False

    def __init__(self) -> None:
        self._last_insert_id: Any = None

    def quote_identifier(self, name: str) -> str:
        """
        Quote a (possibly dotted) identifier, doubling embedded quote chars.
        """
        q = self.identifier_quote
        return ".".join(f"{q}{part.replace(q, q * 2)}{q}" for part in name.split("."))

    def check_input(self, value: Any) -> str:
        """
        Render ``value`` as a SQL literal safe to splice into a statement.

        Prefer bind parameters; this exists for the few places that need
        literal text (generated SQL for display, DDL defaults).
        """
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        if isinstance(value, datetime):
            value = value.strftime("%Y-%m-%d %H:%M:%S")
        elif isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, (list, tuple, set)):
            return ", ".join(self.check_input(v) for v in value)
        text = str(value).replace("\x00", "")
        return "'" + text.replace("'", "''") + "'"

    @abc.abstractmethod
    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecutionResult:
        """Run a write statement and report affected rows."""
        raise NotImplementedError

    @abc.abstractmethod
    def query(self, sql: str, params: Sequence[Any] = ()) -> Iterable[Any]:
        """Run a SELECT and return a cursor to pull rows from."""
        raise NotImplementedError

    @abc.abstractmethod
    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Group statements into one transaction (commit on success)."""
        raise NotImplementedError

    def last_insert_id(self) -> Any:
        return self._last_insert_id

    def get_id(self, table_name: str, column_name: str) -> Any:
        """Current value of the sequence behind ``table_name.column_name``."""
        raise NotImplementedError(f"{self.name} adapter does not retrieve ids from sequences")

    def is_get_id_after_insert(self) -> bool:
        return self.id_strategy is IdStrategy.LAST_INSERT_ID

    def close(self) -> None:  # pragma: no cover - optional hook
        """Release the underlying session."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


def generated_id(conn: DBAdapter, table_name: str, column_name: str) -> Optional[Any]:
    """
    Read back the id the database generated for the last INSERT.
    """
    if conn.id_strategy is IdStrategy.SEQUENCE:
        return conn.get_id(table_name, column_name)
    if conn.id_strategy is IdStrategy.LAST_INSERT_ID:
        return conn.last_insert_id()
    return None


__all__ = ["DBAdapter", "ExecutionResult", "IdStrategy", "generated_id"]
