"""
Pytest configuration for rowbase.

Provides fixtures for:
- An isolated connection registry and identity pool per test
- A recording stub adapter that captures every statement
- A real in-memory SQLite adapter with the test tables created
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Generator, List, Optional, Sequence, Tuple

import pytest

from rowbase.adapters.base import DBAdapter, ExecutionResult, IdStrategy
from rowbase.adapters.sqlite import SQLiteAdapter
from rowbase.config import Settings
from rowbase.domain.pool import IdentityPool
from rowbase.domain.record import BaseRecord
from rowbase.infrastructure.registry import ConnectionRegistry

SQLITE_SCHEMA = """
CREATE TABLE author (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);
CREATE TABLE book (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    author_id INTEGER REFERENCES author(id),
    title TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'draft',
    Created TEXT,
    Updated TEXT
);
CREATE TABLE setting (
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


class RecordingAdapter(DBAdapter):
    """
    Stub connection that records statements instead of running them.
    """

    name = "recording"

    def __init__(
        self,
        row_count: int = 1,
        next_id: Any = None,
        id_strategy: Optional[IdStrategy] = None,
        rows: Sequence[Any] = (),
    ) -> None:
        super().__init__()
        self.row_count = row_count
        self.next_id = next_id
        self.rows = list(rows)
        self.executed: List[Tuple[str, List[Any]]] = []
        self.sequence_calls: List[Tuple[str, str]] = []
        if id_strategy is not None:
            self.id_strategy = id_strategy

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecutionResult:
        self.executed.append((sql, list(params)))
        self._last_insert_id = self.next_id
        return ExecutionResult(row_count=self.row_count, last_insert_id=self.next_id)

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Any]:
        self.executed.append((sql, list(params)))
        return list(self.rows)

    def get_id(self, table_name: str, column_name: str) -> Any:
        self.sequence_calls.append((table_name, column_name))
        return self.next_id

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        yield


@pytest.fixture
def registry() -> Generator[ConnectionRegistry, None, None]:
    reg = ConnectionRegistry()
    yield reg
    reg.clear()


@pytest.fixture
def pool() -> IdentityPool:
    return IdentityPool(capacity=100)


@pytest.fixture(autouse=True)
def _isolate_engine(monkeypatch, registry: ConnectionRegistry, pool: IdentityPool) -> None:
    """
    Point every record type at the per-test registry and pool instead of the
    process-wide ones.
    """
    monkeypatch.setattr(BaseRecord, "registry", registry)
    monkeypatch.setattr(BaseRecord, "identity_pool", pool)


@pytest.fixture
def recording_adapter(registry: ConnectionRegistry) -> RecordingAdapter:
    adapter = RecordingAdapter(next_id=42)
    registry.add_connection("default", adapter)
    return adapter


@pytest.fixture
def sqlite_adapter(registry: ConnectionRegistry) -> SQLiteAdapter:
    adapter = SQLiteAdapter.connect(":memory:")
    adapter.raw_connection.executescript(SQLITE_SCHEMA)
    registry.add_connection("sqlite", adapter)
    return adapter


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_backend="postgres",
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "rowbase"),
        log_level="DEBUG",
    )
