"""
Domain package for rowbase.

Exports the record engine and the value objects it works with: schemas, the
identity pool, statements, hydration and validation.
"""

from rowbase.domain.hydrator import JoinSpec, from_result
from rowbase.domain.pool import IdentityPool, default_identity_pool
from rowbase.domain.query import Query
from rowbase.domain.record import BaseRecord, Column
from rowbase.domain.schema import ColumnSpec, TableSchema
from rowbase.domain.statement import QueryStatement
from rowbase.domain.validation import (
    CallableValidator,
    ChainedValidator,
    NullValidator,
    RequiredColumns,
    ValidationFinding,
    Validator,
)

__all__ = [
    "BaseRecord",
    "CallableValidator",
    "ChainedValidator",
    "Column",
    "ColumnSpec",
    "IdentityPool",
    "JoinSpec",
    "NullValidator",
    "Query",
    "QueryStatement",
    "RequiredColumns",
    "TableSchema",
    "ValidationFinding",
    "Validator",
    "default_identity_pool",
    "from_result",
]
