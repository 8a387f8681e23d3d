from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from rowbase.adapters.sqlite import SQLiteAdapter
from rowbase.domain.pool import IdentityPool
from rowbase.domain.record import BaseRecord
from rowbase.domain.schema import TableSchema
from rowbase.errors import ConnectionNotFoundError
from rowbase.infrastructure.registry import ConnectionRegistry

POOL_CAPACITY = 3
THREADED_INSERTS = 200


class Tag(BaseRecord):
    schema = TableSchema.build("tag", [("id", "int"), "name"], primary_keys=["id"])


def _tag(tag_id: int) -> Tag:
    tag = Tag()
    tag.from_mapping({"id": tag_id, "name": f"t{tag_id}"})
    return tag


class TestIdentityPool:
    def test_insert_get_remove(self):
        pool = IdentityPool(POOL_CAPACITY)
        tag = _tag(1)
        assert pool.insert(tag) is True
        assert pool.get("tag", [1]) is tag
        assert tag in pool
        assert pool.remove(tag) is True
        assert pool.get("tag", [1]) is None
        assert pool.remove(tag) is False

    def test_oldest_entries_are_dropped_at_capacity(self):
        pool = IdentityPool(POOL_CAPACITY)
        for tag_id in range(1, POOL_CAPACITY + 2):
            pool.insert(_tag(tag_id))
        assert len(pool) == POOL_CAPACITY
        assert pool.get("tag", [1]) is None
        assert pool.get("tag", [POOL_CAPACITY + 1]) is not None

    def test_reinsert_replaces_and_refreshes(self):
        pool = IdentityPool(2)
        first, second = _tag(1), _tag(2)
        pool.insert(first)
        pool.insert(second)
        newer_first = _tag(1)
        pool.insert(newer_first)
        pool.insert(_tag(3))
        assert pool.get("tag", [1]) is newer_first
        assert pool.get("tag", [2]) is None

    def test_records_without_keys_are_not_pooled(self):
        pool = IdentityPool()
        assert pool.insert(Tag(name="unsaved")) is False
        assert len(pool) == 0

    def test_zero_capacity_disables_pooling(self):
        pool = IdentityPool(0)
        assert pool.insert(_tag(1)) is False

    def test_negative_capacity_rejected(self):
        with pytest.raises(ValueError):
            IdentityPool(-1)

    def test_opted_out_records_are_not_pooled(self):
        pool = IdentityPool()
        tag = _tag(1)
        tag.set_cache_results(False)
        assert pool.insert(tag) is False
        assert pool.get("tag", [1]) is None

    def test_concurrent_inserts_respect_capacity(self):
        pool = IdentityPool(POOL_CAPACITY)
        tags = [_tag(tag_id) for tag_id in range(1, THREADED_INSERTS + 1)]
        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(pool.insert, tags))
        assert len(pool) == POOL_CAPACITY


class TestConnectionRegistry:
    def test_default_is_first_registered(self):
        registry = ConnectionRegistry()
        first, second = SQLiteAdapter.connect(), SQLiteAdapter.connect()
        registry.add_connection("main", first)
        registry.add_connection("reports", second)

        assert registry.get_connection() is first
        assert registry.get_connection("reports") is second
        assert registry.connection_names() == ["main", "reports"]
        registry.clear()

    def test_unknown_name(self):
        registry = ConnectionRegistry()
        registry.add_connection("main", SQLiteAdapter.connect())
        with pytest.raises(ConnectionNotFoundError, match="reports"):
            registry.get_connection("reports")
        with pytest.raises(LookupError):
            registry.get_connection("reports")
        registry.clear()

    def test_empty_registry(self):
        with pytest.raises(ConnectionNotFoundError):
            ConnectionRegistry().get_connection()

    def test_record_resolves_named_connection(self, registry):
        class Archived(BaseRecord):
            schema = TableSchema.build(
                "archived", [("id", "int")], primary_keys=["id"], connection_name="archive"
            )

        main, archive = SQLiteAdapter.connect(), SQLiteAdapter.connect()
        registry.add_connection("main", main)
        registry.add_connection("archive", archive)
        assert Archived.connection() is archive
        assert Tag.connection() is main

    def test_check_input_uses_default_connection(self, registry):
        registry.add_connection("main", SQLiteAdapter.connect())
        assert registry.check_input("O'Reilly") == "'O''Reilly'"
        assert registry.check_input(None) == "NULL"
        assert registry.check_input(True) == "1"
        assert registry.check_input(12) == "12"
        assert registry.check_input([1, "a"]) == "1, 'a'"
