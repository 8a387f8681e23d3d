"""
Backend adapters implementing the connection contract.
"""

from rowbase.adapters.base import DBAdapter, ExecutionResult, IdStrategy, generated_id
from rowbase.adapters.postgres import PostgresAdapter
from rowbase.adapters.sqlite import SQLiteAdapter

__all__ = [
    "DBAdapter",
    "ExecutionResult",
    "IdStrategy",
    "PostgresAdapter",
    "SQLiteAdapter",
    "generated_id",
]
