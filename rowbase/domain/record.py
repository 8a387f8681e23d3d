"""
Base class for persistable records.

A record subclass binds one ``TableSchema``; each instance stands for one row,
existing or not yet inserted. Column values live in a plain dict and every
assignment made by callers goes through ``set()``, which also remembers the
column as modified. Hydration from query results writes the dict directly, so
freshly loaded records start clean.

Usage:
    class Book(BaseRecord):
        schema = TableSchema.build(
            "book", [("id", "int"), "title", "Created", "Updated"],
            primary_keys=["id"], auto_increment=True,
        )

    book = Book(title="Dune")
    book.save()          # INSERT, id read back from the adapter
    book.title = "Dune Messiah"
    book.save()          # UPDATE "book" SET "title" = ?, "Updated" = ? WHERE "id" = ?
    book.delete()

Caveat: ``delete()`` and ``save()`` address the row by the primary-key values
the instance holds *now*. Changing a key in memory and then saving or deleting
targets the row with the new key and leaves the originally loaded row alone.
"""

from __future__ import annotations

import copy as copy_module
import keyword
from datetime import datetime, timezone
from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from rowbase.adapters.base import DBAdapter, generated_id
from rowbase.config import get_settings
from rowbase.domain.pool import IdentityPool, default_identity_pool
from rowbase.domain.query import Query
from rowbase.domain.schema import TableSchema
from rowbase.domain.statement import QueryStatement
from rowbase.domain.validation import NullValidator, ValidationFinding, Validator
from rowbase.errors import HydrationError, PreconditionError
from rowbase.infrastructure.registry import ConnectionRegistry, default_registry
from rowbase.utils.logging import get_logger

if TYPE_CHECKING:
    from rowbase.domain.hydrator import JoinEntry

log = get_logger(__name__)

R = TypeVar("R", bound="BaseRecord")

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Column:
    """Data descriptor exposing one column as an attribute."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __get__(self, obj: Optional["BaseRecord"], owner: type) -> Any:
        if obj is None:
            return self
        return obj.get(self.name)

    def __set__(self, obj: "BaseRecord", value: Any) -> None:
        obj.set(self.name, value)


class BaseRecord:
    """
    Row-mapped record with dirty tracking and CRUD.

    Class attributes
    ----------------
    schema : TableSchema
        Table metadata; required on concrete subclasses.
    validator : Validator
        Consulted by ``validate()``; accepts everything by default.
    identity_pool : IdentityPool | None
        Pool used when an operation gets no explicit ``pool=``; None means the
        process-wide pool.
    registry : ConnectionRegistry | None
        Where the connection named by ``schema.connection_name`` is looked up;
        None means the process-wide registry.
    created_column, updated_column : str
        Timestamp columns populated automatically by ``save()`` when present.
    format_dates : bool | None
        Store automatic timestamps as ``"%Y-%m-%d %H:%M:%S"`` strings (True)
        or ``datetime`` objects (False). None follows ``Settings.format_dates``.
    cache_results : bool
        Whether ``retrieve_by_pk`` may answer from the identity pool, and the
        default for each instance's ``get_cache_results()``.
    """

    schema: ClassVar[TableSchema]
    validator: ClassVar[Validator] = NullValidator()
    identity_pool: ClassVar[Optional[IdentityPool]] = None
    registry: ClassVar[Optional[ConnectionRegistry]] = None
    created_column: ClassVar[str] = "Created"
    updated_column: ClassVar[str] = "Updated"
    format_dates: ClassVar[Optional[bool]] = None
    cache_results: ClassVar[bool] = True

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        schema = cls.__dict__.get("schema")
        if schema is None:
            return
        if not isinstance(schema, TableSchema):
            raise TypeError(f"{cls.__name__}.schema must be a TableSchema")
        for name in schema.column_names:
            if not name.isidentifier() or keyword.iskeyword(name) or hasattr(cls, name):
                continue
            setattr(cls, name, Column(name))

    def __init__(self, **values: Any) -> None:
        if not hasattr(type(self), "schema"):
            raise PreconditionError(f"{type(self).__name__} has no schema")
        self._values: Dict[str, Any] = dict.fromkeys(self.schema.column_names)
        self._modified_columns: List[str] = []
        self._is_new = True
        self._cache_results: Optional[bool] = None
        self.validation_errors: List[ValidationFinding] = []
        for name, value in values.items():
            self.set(name, value)

    def __repr__(self) -> str:
        pk = ", ".join(f"{k}={self._values[k]!r}" for k in self.schema.primary_keys)
        state = "new" if self._is_new else "loaded"
        return f"<{type(self).__name__} {pk or self.schema.table_name} ({state})>"

    # ------------------------------------------------------------------ access

    def _check_column(self, name: str) -> None:
        if name not in self._values:
            raise PreconditionError(
                f"'{name}' is not a column of {type(self).__name__} ({self.schema.table_name})"
            )

    def get(self, name: str) -> Any:
        self._check_column(name)
        return self._values[name]

    def set(self, name: str, value: Any) -> None:
        """
        Assign a column value, marking the column modified when the value
        changes. Values of a different type count as a change (1 vs "1").
        """
        self._check_column(name)
        old = self._values[name]
        if old is value or (type(old) is type(value) and old == value):
            return
        self._values[name] = value
        if name not in self._modified_columns:
            self._modified_columns.append(name)

    # -------------------------------------------------------------- hydration

    def _cast_ints(self) -> None:
        for name in self.schema.integer_columns:
            value = self._values[name]
            if value is not None and not isinstance(value, int):
                self._values[name] = int(value)

    def from_positional(self, values: Sequence[Any], start: int = 0) -> Tuple[bool, int]:
        """
        Load one value per column from ``values[start:]`` in schema order.

        Returns ``(ok, next_offset)``. The offset always advances by the column
        count so several record types can be read from one joined row. ``ok``
        is False when the schema has primary keys and one of them is NULL,
        which marks an absent optional entity rather than an error.
        """
        names = self.schema.column_names
        end = start + len(names)
        if end > len(values):
            raise HydrationError(
                f"Row has {len(values)} values; {type(self).__name__} needs "
                f"{len(names)} starting at offset {start}"
            )
        for name, value in zip(names, values[start:end]):
            self._values[name] = value
        return self._finish_hydration(), end

    def from_mapping(self, values: Mapping[str, Any]) -> bool:
        """
        Load values keyed by column name. Keys that are not columns are
        ignored. Same NULL primary key rule as ``from_positional``.
        """
        for name in self.schema.column_names:
            if name in values:
                self._values[name] = values[name]
        return self._finish_hydration()

    def _finish_hydration(self) -> bool:
        if self.schema.primary_keys and not self.has_primary_key_values():
            return False
        self._cast_ints()
        self.set_new(False)
        return True

    @classmethod
    def from_result(
        cls: Type[R],
        source: Any,
        *,
        pool: Optional[IdentityPool] = None,
        write_cache: bool = False,
    ) -> Iterator[R]:
        """Hydrate every row of ``source`` into an instance of this type."""
        from rowbase.domain.hydrator import from_result

        return from_result(source, cls, pool=pool, write_cache=write_cache)

    # ------------------------------------------------------------ dirty state

    def is_modified(self) -> bool:
        return bool(self._modified_columns)

    def is_column_modified(self, name: str) -> bool:
        lowered = name.lower()
        return any(col.lower() == lowered for col in self._modified_columns)

    def modified_columns(self) -> List[str]:
        return list(self._modified_columns)

    def reset_modified(self) -> None:
        self._modified_columns = []

    def is_new(self) -> bool:
        return self._is_new

    def set_new(self, flag: bool) -> None:
        self._is_new = bool(flag)

    def set_cache_results(self, value: bool = True) -> None:
        """
        Opt this instance in or out of the identity pool. When False it is
        not pooled on insert or load, and ``retrieve_by_pk`` will not hand it
        out if it is already pooled.
        """
        self._cache_results = bool(value)

    def get_cache_results(self) -> bool:
        if self._cache_results is None:
            return type(self).cache_results
        return self._cache_results

    # ------------------------------------------------------------ conversion

    def to_dict(self) -> Dict[str, Any]:
        return {name: self._values[name] for name in self.schema.column_names}

    def from_dict(self, values: Mapping[Any, Any]) -> None:
        """
        Assign every entry whose key is a column name, marking it modified.
        """
        for name, value in values.items():
            if isinstance(name, str) and name in self._values:
                self.set(name, value)

    def copy(self: R) -> R:
        """
        New unsaved record with the same column values and NULL primary keys.
        """
        new_record = type(self)()
        values = copy_module.deepcopy(self.to_dict())
        for pk in self.schema.primary_keys:
            values.pop(pk, None)
        # primary keys stay unset and unmarked
        new_record.from_dict(values)
        return new_record

    # ----------------------------------------------------------- primary keys

    def has_primary_key_values(self) -> bool:
        pks = self.schema.primary_keys
        if not pks:
            return False
        return all(self._values[pk] is not None for pk in pks)

    def primary_key_values(self) -> List[Any]:
        return [self._values[pk] for pk in self.schema.primary_keys]

    # ------------------------------------------------------------- validation

    def validate(self) -> bool:
        """
        Run the type's validator. Override to add checks; populate
        ``validation_errors`` and return False to block ``save()``.
        """
        self.validation_errors = []
        self.validation_errors = list(self.validator.validate(self))
        return not self.validation_errors

    def get_validation_errors(self) -> List[ValidationFinding]:
        return self.validation_errors

    # ------------------------------------------------------------- plumbing

    @classmethod
    def connection(cls) -> DBAdapter:
        registry = cls.registry if cls.registry is not None else default_registry()
        return registry.get_connection(cls.schema.connection_name)

    @classmethod
    def _resolve_pool(cls, pool: Optional[IdentityPool]) -> IdentityPool:
        if pool is not None:
            return pool
        if cls.identity_pool is not None:
            return cls.identity_pool
        return default_identity_pool()

    def _precondition(self, message: str) -> PreconditionError:
        log.error(
            message,
            extra={"table": self.schema.table_name, "record": type(self).__name__},
        )
        return PreconditionError(message)

    def _current_time(self) -> Any:
        now = datetime.now(timezone.utc)
        fmt = self.format_dates if self.format_dates is not None else get_settings().format_dates
        return now.strftime(DATE_FORMAT) if fmt else now

    # ------------------------------------------------------------------ CRUD

    def save(self, pool: Optional[IdentityPool] = None) -> int:
        """
        Insert, update or replace this record.

        Returns the number of affected rows. A record that fails ``validate()``
        is not written and 0 is returned; check ``validation_errors`` to tell
        that apart from a write that matched no rows.
        """
        if not self.validate():
            log.info(
                "Validation failed, nothing saved",
                extra={
                    "table": self.schema.table_name,
                    "errors": [str(finding) for finding in self.validation_errors],
                },
            )
            return 0

        schema = self.schema
        created, updated = self.created_column, self.updated_column
        if schema.has_column(created) and self.is_new() and not self.is_column_modified(created):
            self.set(created, self._current_time())
        if schema.has_column(updated) and not self.is_column_modified(updated):
            self.set(updated, self._current_time())

        if schema.primary_keys:
            if self.is_new():
                return self._insert(pool)
            return self._update(pool)
        return self._replace()

    def delete(self, pool: Optional[IdentityPool] = None) -> int:
        """
        Delete the row matching this record's primary key values.

        Raises
        ------
        PreconditionError
            If the table has no primary keys or one of them is NULL.
        """
        pks = self.schema.primary_keys
        if not pks:
            raise self._precondition("This table has no primary keys")
        q = Query(table=self.schema.table_name)
        for pk in pks:
            value = self._values[pk]
            if value is None:
                raise self._precondition("Cannot delete using NULL primary key.")
            q.add_and(pk, value)
        q.set_limit(1)

        conn = self.connection()
        sql, params = q.delete_sql(conn)
        result = QueryStatement(conn, sql, params).bind_and_execute()
        self._resolve_pool(pool).remove(self)
        return result.row_count

    def _insert(self, pool: Optional[IdentityPool] = None) -> int:
        conn = self.connection()
        schema = self.schema
        pk = schema.primary_key
        needs_id = bool(pk and schema.auto_increment and self._values[pk] is None)

        fields: List[str] = []
        values: List[Any] = []
        for column in schema.column_names:
            value = self._values[column]
            if value is None and not self.is_column_modified(column):
                continue
            fields.append(conn.quote_identifier(column))
            values.append(value)

        table = conn.quote_identifier(schema.table_name)
        if fields:
            placeholders = ", ".join("?" for _ in fields)
            sql = f"INSERT INTO {table} ({', '.join(fields)}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"
        result = QueryStatement(conn, sql, values).bind_and_execute()

        if needs_id:
            new_id = generated_id(conn, schema.table_name, pk)
            self._values[pk] = int(new_id) if new_id is not None else None
        self.reset_modified()
        self.set_new(False)
        self._resolve_pool(pool).insert(self)
        return result.row_count

    def _update(self, pool: Optional[IdentityPool] = None) -> int:
        schema = self.schema
        if not schema.primary_keys:
            raise self._precondition("This table has no primary keys")

        modified = self.modified_columns()
        if not modified:
            return 0
        for pk in schema.primary_keys:
            if self._values[pk] is None:
                raise self._precondition("Cannot update with NULL primary key.")

        conn = self.connection()
        fields = [f"{conn.quote_identifier(column)} = ?" for column in modified]
        values = [self._values[column] for column in modified]
        where = [f"{conn.quote_identifier(pk)} = ?" for pk in schema.primary_keys]
        values.extend(self.primary_key_values())

        table = conn.quote_identifier(schema.table_name)
        sql = f"UPDATE {table} SET {', '.join(fields)} WHERE {' AND '.join(where)}"
        result = QueryStatement(conn, sql, values).bind_and_execute()

        self.reset_modified()
        self._resolve_pool(pool).remove(self)
        return result.row_count

    def _replace(self) -> int:
        conn = self.connection()
        columns = self.schema.column_names
        fields = ", ".join(conn.quote_identifier(column) for column in columns)
        placeholders = ", ".join("?" for _ in columns)
        table = conn.quote_identifier(self.schema.table_name)
        sql = f"{conn.replace_verb} {table} ({fields}) VALUES ({placeholders})"
        result = QueryStatement(conn, sql, [self._values[c] for c in columns]).bind_and_execute()

        self.reset_modified()
        self.set_new(False)
        return result.row_count

    # -------------------------------------------------------------- loading

    @classmethod
    def fetch(
        cls: Type[R],
        sql: str,
        params: Sequence[Any] = (),
        *,
        pool: Optional[IdentityPool] = None,
        write_cache: bool = False,
    ) -> Iterator[R]:
        """
        Run a SELECT (``?`` placeholders) on this type's connection and hydrate
        the rows lazily.
        """
        cursor = QueryStatement(cls.connection(), sql, params).bind_and_query()
        return cls.from_result(cursor, pool=pool, write_cache=write_cache)

    @classmethod
    def fetch_joined(
        cls,
        sql: str,
        entries: Sequence["JoinEntry"],
        params: Sequence[Any] = (),
        *,
        pool: Optional[IdentityPool] = None,
        write_cache: bool = False,
    ) -> Iterator["BaseRecord"]:
        """
        Run a SELECT whose rows concatenate the columns of several record
        types and hydrate them as joined objects.
        """
        from rowbase.domain.hydrator import from_result

        cursor = QueryStatement(cls.connection(), sql, params).bind_and_query()
        return from_result(cursor, entries, pool=pool, write_cache=write_cache)

    @classmethod
    def retrieve_by_pk(
        cls: Type[R],
        *pk_values: Any,
        pool: Optional[IdentityPool] = None,
        use_cache: Optional[bool] = None,
    ) -> Optional[R]:
        """
        Load the record with the given primary key values, answering from the
        identity pool when caching is enabled.
        """
        pks = cls.schema.primary_keys
        if not pks:
            raise PreconditionError(f"{cls.schema.table_name} has no primary keys")
        if len(pk_values) != len(pks):
            raise PreconditionError(
                f"{cls.__name__} needs {len(pks)} primary key value(s), got {len(pk_values)}"
            )
        if any(value is None for value in pk_values):
            return None

        resolved_pool = cls._resolve_pool(pool)
        if use_cache if use_cache is not None else cls.cache_results:
            cached = resolved_pool.get(cls.schema.table_name, pk_values)
            if isinstance(cached, cls) and cached.get_cache_results():
                return cached

        q = Query(table=cls.schema.table_name).set_limit(1)
        for pk, value in zip(pks, pk_values):
            q.add_and(pk, value)
        conn = cls.connection()
        sql, params = q.select_sql(conn, cls.schema.column_names)
        cursor = QueryStatement(conn, sql, params).bind_and_query()
        try:
            records = cls.from_result(cursor, pool=resolved_pool, write_cache=True)
            return next(iter(records), None)
        finally:
            close = getattr(cursor, "close", None)
            if callable(close):
                close()


__all__ = ["BaseRecord", "Column", "DATE_FORMAT"]
