from __future__ import annotations

from typing import Any, List

import pytest

from rowbase.domain.hydrator import JoinSpec, from_result
from rowbase.domain.record import BaseRecord
from rowbase.domain.schema import TableSchema
from rowbase.errors import HydrationError, PreconditionError

ROW_COUNT = 1200


class A(BaseRecord):
    schema = TableSchema.build("a", [("id", "int"), "name"], primary_keys=["id"])

    def set_b(self, b: "B") -> None:
        self.b_obj = b


class B(BaseRecord):
    schema = TableSchema.build("b", [("id", "int"), "name"], primary_keys=["id"])


class C(BaseRecord):
    schema = TableSchema.build("c", [("id", "int"), "label"], primary_keys=["id"])


class _FakeCursor:
    def __init__(self, rows: List[Any]) -> None:
        self._rows = rows
        self.fetch_calls = 0

    def fetchmany(self, size: int) -> List[Any]:
        self.fetch_calls += 1
        batch, self._rows = self._rows[:size], self._rows[size:]
        return batch


class TestJoinedRows:
    def test_absent_related_entity_is_skipped(self):
        results = list(from_result([[1, "x", None, None]], [A, B]))

        assert len(results) == 1
        main = results[0]
        assert isinstance(main, A)
        assert main.to_dict() == {"id": 1, "name": "x"}
        assert not hasattr(main, "b_obj")

    def test_related_entity_attached_through_setter(self):
        (main,) = from_result([[1, "x", 7, "y"]], [A, B])

        assert isinstance(main.b_obj, B)
        assert main.b_obj.to_dict() == {"id": 7, "name": "y"}
        assert main.is_new() is False
        assert main.b_obj.is_new() is False

    def test_attribute_assignment_without_setter(self):
        (main,) = from_result([[1, "x", 3, "label"]], [A, C])
        assert main.c.label == "label"

    def test_explicit_attach_callable_and_relation(self):
        attached = []

        def attach(main: BaseRecord, obj: BaseRecord) -> None:
            attached.append((main, obj))

        (main,) = from_result(
            [[1, "x", 7, "y", 3, "z"]],
            [A, JoinSpec(B, attach=attach), JoinSpec(C, relation="category")],
        )
        assert len(attached) == 1
        assert attached[0][0] is main
        assert attached[0][1].id == 7
        assert not hasattr(main, "b_obj")
        assert main.category.id == 3

    def test_first_present_type_becomes_main(self):
        (main,) = from_result([[None, None, 7, "y"]], [A, B])
        assert isinstance(main, B)

    def test_row_with_no_present_types_yields_nothing(self):
        assert list(from_result([[None, None, None, None]], [A, B])) == []

    def test_write_cache_pools_every_instance(self, pool):
        list(from_result([[1, "x", 7, "y"]], [A, B], pool=pool, write_cache=True))
        assert isinstance(pool.get("a", [1]), A)
        assert isinstance(pool.get("b", [7]), B)

    def test_engine_setters_are_not_relation_setters(self):
        (main,) = from_result([[1, "x", 3, "t"]], [A, JoinSpec(C, relation="new")])
        assert main.is_new() is False
        assert main.new.label == "t"
        assert main.is_modified() is False

    @pytest.mark.parametrize("relation", ["name", "save", "cache_results"])
    def test_relation_named_like_column_or_engine_attribute(self, relation):
        rows = from_result([[1, "x", 7, "y"]], [A, JoinSpec(B, relation=relation)])
        with pytest.raises(PreconditionError):
            list(rows)

    def test_mapping_rows_are_read_positionally(self):
        (main,) = from_result([{"a.id": 1, "a.name": "x", "b.id": 2, "b.name": "y"}], [A, B])
        assert main.b_obj.id == 2


class TestSingleType:
    def test_sequence_and_mapping_rows(self):
        rows = [[1, "one"], {"id": "2", "name": "two", "ignored": True}]
        records = list(from_result(rows, A))
        assert [r.id for r in records] == [1, 2]
        assert all(not r.is_modified() and not r.is_new() for r in records)

    def test_null_primary_key_is_fatal(self):
        with pytest.raises(HydrationError):
            list(from_result([[None, "orphan"]], A))

    def test_short_row_is_fatal(self):
        with pytest.raises(HydrationError):
            list(from_result([[1]], A))

    def test_write_cache_uses_pool(self, pool):
        list(from_result([[1, "one"]], A, pool=pool, write_cache=True))
        assert pool.get("a", [1]) is not None

    def test_classmethod_entry_point(self):
        (record,) = A.from_result([[4, "four"]])
        assert record.id == 4

    def test_cursor_is_pulled_lazily(self):
        cursor = _FakeCursor([[i, f"n{i}"] for i in range(1, ROW_COUNT + 1)])
        records = from_result(cursor, A)

        first = next(records)

        assert first.id == 1
        assert cursor.fetch_calls == 1
        assert sum(1 for _ in records) == ROW_COUNT - 1


class TestPreconditions:
    @pytest.mark.parametrize("spec", [None, [], ()])
    def test_missing_type(self, spec):
        with pytest.raises(PreconditionError):
            from_result([], spec)

    def test_non_record_type(self):
        with pytest.raises(PreconditionError):
            from_result([], [dict])
