"""
Tests for filtering/ordering helpers and id generation.
"""

import pytest

from debtdesk.domain.models.enums import RecordSource
from debtdesk.domain.models.record import Record
from debtdesk.domain.query import apply_filters, apply_order, matches_filters, parse_order_by
from debtdesk.services.repository.ids import IdGenerator, to_base36


def make(record_id, **data):
    return Record(entity="cases", id=record_id, data=data, source=RecordSource.LOCAL)


class TestFilters:
    """Tests for matches_filters and apply_filters."""

    def test_scalar_equality(self):
        assert matches_filters({"status": "new"}, {"status": "new"})
        assert not matches_filters({"status": "new"}, {"status": "paid"})

    def test_membership(self):
        assert matches_filters({"status": "new"}, {"status": ["new", "paid"]})
        assert not matches_filters({"status": "disputed"}, {"status": ("new", "paid")})

    def test_membership_with_unhashable_values(self):
        assert not matches_filters({"tags": ["a", "b"]}, {"tags": {"x", "y"}})
        assert matches_filters({"tags": ["a", "b"]}, {"tags": [["a", "b"], ["c"]]})
        assert not matches_filters({"meta": {"k": 1}}, {"meta": frozenset({"k"})})

    def test_missing_field_only_matches_none(self):
        assert matches_filters({}, {"portfolio_id": None})
        assert not matches_filters({}, {"portfolio_id": "p1"})

    def test_conjunction_over_records(self):
        records = [
            make("1", status="new", priority="high"),
            make("2", status="new", priority="low"),
            make("3", status="paid", priority="high"),
        ]
        assert [r.id for r in apply_filters(records, {"status": "new", "priority": "high"})] == ["1"]

    def test_no_filters(self):
        records = [make("1"), make("2")]
        assert apply_filters(records, None) == records


class TestOrdering:
    """Tests for parse_order_by and apply_order."""

    def test_parse_order_by(self):
        assert parse_order_by("status") == ("status", False)
        assert parse_order_by("-created_date") == ("created_at", True)
        assert parse_order_by(None) is None
        assert parse_order_by("-") is None

    def test_stable_descending(self):
        records = [make("a", k="1"), make("b", k="2"), make("c", k="1"), make("d", k="2")]
        assert [r.id for r in apply_order(records, "-k")] == ["b", "d", "a", "c"]

    def test_missing_values_sort_as_empty_string(self):
        records = [make("a", k="x"), make("b"), make("c", k="")]
        assert [r.id for r in apply_order(records, "k")] == ["b", "c", "a"]


class TestIdGenerator:
    """Tests for IdGenerator."""

    def test_base36(self):
        assert to_base36(0, 3) == "000"
        assert to_base36(35, 1) == "z"
        assert to_base36(36, 2) == "10"

    def test_unique_within_same_millisecond(self):
        gen = IdGenerator(clock=lambda: 1700000000.0)
        ids = [gen.next_id() for _ in range(1000)]

        assert len(set(ids)) == 1000
        assert ids == sorted(ids)

    def test_clock_stepping_back_stays_ordered(self):
        ticks = iter([1700000000.5, 1700000000.0, 1700000001.0])
        gen = IdGenerator(clock=lambda: next(ticks))
        ids = [gen.next_id() for _ in range(3)]

        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    def test_local_prefix(self):
        gen = IdGenerator()
        local_id = gen.next_id(local=True)

        assert local_id.startswith("local_")
        assert IdGenerator.is_local(local_id)
        assert not IdGenerator.is_local(gen.next_id())
