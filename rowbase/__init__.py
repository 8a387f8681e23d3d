"""
rowbase - row-oriented persistence engine.

Maps in-memory records to single database rows and writes them back with
generated INSERT/UPDATE/DELETE/REPLACE statements:

- Dirty tracking of assigned columns
- Identity pooling of recently loaded rows
- Adapter-specific retrieval of generated primary keys (SQLite, PostgreSQL)
- Hydration of query results into one or many cooperating records

Routing, views and code generation are left to the host application, which
supplies table schemas and calls ``save()``, ``delete()`` and the hydrators.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from rowbase.adapters import DBAdapter, ExecutionResult, IdStrategy, PostgresAdapter, SQLiteAdapter
from rowbase.config import Settings, get_settings
from rowbase.domain import (
    BaseRecord,
    ColumnSpec,
    IdentityPool,
    JoinSpec,
    NullValidator,
    Query,
    QueryStatement,
    RequiredColumns,
    TableSchema,
    ValidationFinding,
    Validator,
    default_identity_pool,
    from_result,
)
from rowbase.errors import (
    ConnectionNotFoundError,
    HydrationError,
    PreconditionError,
    RowbaseError,
)
from rowbase.infrastructure import ConnectionRegistry, bootstrap_registry, default_registry
from rowbase.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Records
    "BaseRecord",
    "ColumnSpec",
    "TableSchema",
    "IdentityPool",
    "default_identity_pool",
    "JoinSpec",
    "from_result",
    "Query",
    "QueryStatement",
    # Validation
    "NullValidator",
    "RequiredColumns",
    "ValidationFinding",
    "Validator",
    # Connections
    "DBAdapter",
    "ExecutionResult",
    "IdStrategy",
    "PostgresAdapter",
    "SQLiteAdapter",
    "ConnectionRegistry",
    "bootstrap_registry",
    "default_registry",
    # Errors
    "RowbaseError",
    "PreconditionError",
    "HydrationError",
    "ConnectionNotFoundError",
    # Logging
    "configure_logging",
    "get_logger",
]
