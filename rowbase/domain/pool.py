"""
Identity pool: a bounded cache of recently loaded records keyed by table and
primary-key values.

The pool only saves round-trips when related rows are looked up repeatedly;
the database row is always the source of truth. Entries are dropped oldest
first once the capacity is exceeded. Reads and writes are guarded by a lock so
the hydrate-then-insert sequence is safe under a threaded host.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Hashable, Optional, Sequence, Tuple

from rowbase.config import get_settings
from rowbase.utils.logging import get_logger

if TYPE_CHECKING:
    from rowbase.domain.record import BaseRecord

log = get_logger(__name__)

MAX_INSTANCE_POOL_SIZE = 100

PoolKey = Tuple[str, Tuple[Hashable, ...]]


def _freeze(value: Any) -> Hashable:
    try:
        hash(value)
    except TypeError:
        return repr(value)
    return value


class IdentityPool:
    """
    Least-recently-inserted cache of records.

    Parameters
    ----------
    capacity : int
        Maximum number of records kept. 0 disables pooling entirely.
    """

    def __init__(self, capacity: int = MAX_INSTANCE_POOL_SIZE) -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self.capacity = capacity
        self._entries: "OrderedDict[PoolKey, BaseRecord]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(table_name: str, pk_values: Sequence[Any]) -> PoolKey:
        return table_name, tuple(_freeze(v) for v in pk_values)

    @staticmethod
    def key_for(record: "BaseRecord") -> Optional[PoolKey]:
        """Pool key of a record, or None when it has no complete primary key."""
        if not record.has_primary_key_values():
            return None
        return IdentityPool.make_key(record.schema.table_name, record.primary_key_values())

    def insert(self, record: "BaseRecord") -> bool:
        """
        Store ``record`` under its primary key. Returns False when pooling is disabled
        or the record cannot be pooled (no complete key, or
        ``set_cache_results(False)``).
        """
        key = self.key_for(record)
        if key is None or self.capacity == 0 or not record.get_cache_results():
            return False
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = record
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("Identity pool full, dropped oldest entry", extra={"key": repr(evicted)})
        return True

    def get(self, table_name: str, pk_values: Sequence[Any]) -> Optional["BaseRecord"]:
        with self._lock:
            return self._entries.get(self.make_key(table_name, pk_values))

    def remove(self, record: "BaseRecord") -> bool:
        key = self.key_for(record)
        if key is None:
            return False
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, record: object) -> bool:
        key = self.key_for(record)  # type: ignore[arg-type]
        with self._lock:
            return key is not None and self._entries.get(key) is record


_default_pool: Optional[IdentityPool] = None
_default_lock = threading.Lock()


def default_identity_pool() -> IdentityPool:
    """Process-wide pool sized from ``Settings.identity_pool_size``."""
    global _default_pool
    with _default_lock:
        if _default_pool is None:
            _default_pool = IdentityPool(get_settings().identity_pool_size)
        return _default_pool


__all__ = ["IdentityPool", "MAX_INSTANCE_POOL_SIZE", "default_identity_pool"]
