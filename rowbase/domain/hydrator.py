"""
Result hydration: turn rows from a cursor into record instances.

Two shapes are supported:

- one record type per row (``from_result(cursor, Book)``), where every row must
  produce an instance;
- joined rows (``from_result(cursor, [Book, JoinSpec(Author, "author")])``),
  where each row holds the columns of several types back to back. The first
  type present in a row becomes the main object; the others are attached to
  it. A type whose primary key is NULL in a row (an outer join that found
  nothing) is skipped for that row.

Rows are pulled lazily with ``fetchmany`` so results of any size can be
consumed, and iteration can stop at any point.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Type,
    Union,
)

from rowbase.domain.pool import IdentityPool
from rowbase.domain.record import BaseRecord
from rowbase.errors import HydrationError, PreconditionError
from rowbase.utils.logging import get_logger

log = get_logger(__name__)

FETCH_BATCH_SIZE = 500

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


@dataclass(frozen=True)
class JoinSpec:
    """
    One record type in a joined row.

    Attributes
    ----------
    record_type : type[BaseRecord]
        Type hydrated from this slice of the row.
    relation : str, optional
        Name the object is attached under on the main object. Defaults to the
        snake_case class name (``BookAuthor`` -> ``book_author``).
    attach : callable, optional
        ``attach(main, obj)`` wiring the object to the main one. Without it a
        public ``set_<relation>`` method on the main object is called if one
        exists, otherwise ``main.<relation>`` is assigned. ``BaseRecord``'s own
        methods (``set_new``, ``set_cache_results``) never count as relation
        setters, and a relation named like a column or engine attribute is a
        ``PreconditionError``.
    """

    record_type: Type[BaseRecord]
    relation: Optional[str] = None
    attach: Optional[Callable[[BaseRecord, BaseRecord], None]] = None

    @property
    def relation_name(self) -> str:
        return self.relation or _snake_case(self.record_type.__name__)


JoinEntry = Union[JoinSpec, Type[BaseRecord]]


def _iter_rows(source: Any, batch_size: int = FETCH_BATCH_SIZE) -> Iterator[Any]:
    """
    Yield rows from a DB-API cursor using fetchmany, or from any iterable.
    """
    fetchmany = getattr(source, "fetchmany", None)
    if callable(fetchmany):
        while True:
            batch = fetchmany(batch_size)
            if not batch:
                break
            yield from batch
    else:
        yield from source


def _as_mapping(row: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(row, Mapping):
        return row
    keys = getattr(row, "keys", None)
    if callable(keys):
        return {key: row[key] for key in keys()}
    return None


def _as_values(row: Any) -> List[Any]:
    if isinstance(row, Mapping):
        return list(row.values())
    return list(row)


def _normalize(entry: JoinEntry) -> JoinSpec:
    if isinstance(entry, JoinSpec):
        return entry
    if isinstance(entry, type) and issubclass(entry, BaseRecord):
        return JoinSpec(entry)
    raise PreconditionError(f"Cannot hydrate into {entry!r}; expected a BaseRecord type or JoinSpec")


def _attach(main: BaseRecord, spec: JoinSpec, obj: BaseRecord) -> None:
    if spec.attach is not None:
        spec.attach(main, obj)
        return
    name = spec.relation_name
    setter_name = f"set_{name}"
    # engine methods such as set_new are never relation setters
    if not hasattr(BaseRecord, setter_name):
        setter = getattr(main, setter_name, None)
        if callable(setter):
            setter(obj)
            return
    if main.schema.has_column(name) or hasattr(BaseRecord, name):
        log.error(
            "Relation name collides with a record attribute",
            extra={"record": type(main).__name__, "relation": name},
        )
        raise PreconditionError(
            f"Cannot attach {type(obj).__name__} to {type(main).__name__} as '{name}': "
            "the name is a column or engine attribute; pass relation= or attach="
        )
    setattr(main, name, obj)


def _hydrate_single(
    rows: Iterable[Any],
    record_type: Type[BaseRecord],
    pool: Optional[IdentityPool],
) -> Iterator[BaseRecord]:
    for row in rows:
        record = record_type()
        mapping = _as_mapping(row)
        if mapping is not None:
            ok = record.from_mapping(mapping)
        else:
            ok, _ = record.from_positional(_as_values(row))
        if not ok:
            log.error(
                "Row has NULL primary key for single-type hydration",
                extra={"table": record_type.schema.table_name, "record": record_type.__name__},
            )
            raise HydrationError(
                f"Result row has a NULL primary key for {record_type.__name__}; "
                "the query does not match the schema"
            )
        if pool is not None:
            pool.insert(record)
        yield record


def _hydrate_joined(
    rows: Iterable[Any],
    specs: List[JoinSpec],
    pool: Optional[IdentityPool],
    write_cache: bool,
) -> Iterator[BaseRecord]:
    for row in rows:
        values = _as_values(row)
        offset = 0
        main: Optional[BaseRecord] = None
        for spec in specs:
            obj = spec.record_type()
            ok, offset = obj.from_positional(values, offset)
            if not ok:
                continue
            if write_cache:
                spec.record_type._resolve_pool(pool).insert(obj)
            if main is None:
                main = obj
            else:
                _attach(main, spec, obj)
        if main is not None:
            yield main


def from_result(
    source: Any,
    spec: Union[Type[BaseRecord], Sequence[JoinEntry]],
    *,
    pool: Optional[IdentityPool] = None,
    write_cache: bool = False,
) -> Iterator[BaseRecord]:
    """
    Lazily hydrate the rows of ``source`` into records.

    Parameters
    ----------
    source : cursor | iterable
        DB-API cursor (pulled with fetchmany) or any iterable of rows. Rows may
        be sequences of values or mappings of column name to value.
    spec : type[BaseRecord] | sequence of JoinSpec / record types
        A single record type, or the ordered types making up a joined row.
    pool : IdentityPool, optional
        Pool written when ``write_cache`` is True; defaults per record type.
    write_cache : bool
        Whether each hydrated instance is put into the identity pool.

    Raises
    ------
    PreconditionError
        If no record type is given.
    HydrationError
        If a single-type row has a NULL primary key.
    """
    if not spec:
        raise PreconditionError("No record type given")
    rows = _iter_rows(source)
    if isinstance(spec, type):
        if not issubclass(spec, BaseRecord):
            raise PreconditionError(f"{spec!r} is not a BaseRecord type")
        single_pool = spec._resolve_pool(pool) if write_cache else None
        return _hydrate_single(rows, spec, single_pool)
    if isinstance(spec, JoinSpec):
        specs = [spec]
    else:
        specs = [_normalize(entry) for entry in spec]
    if not specs:
        raise PreconditionError("No record type given")
    return _hydrate_joined(rows, specs, pool, write_cache)


__all__ = ["FETCH_BATCH_SIZE", "JoinEntry", "JoinSpec", "from_result"]
