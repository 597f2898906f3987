"""
Tests for ReconciliationPolicy routing and the hybrid merge.
"""

import pytest

from debtdesk.domain.metadata.registry import EntityDefinition
from debtdesk.domain.models.enums import PolicyCategory, RecordSource
from debtdesk.domain.models.record import Record
from debtdesk.services.repository.policy import ReconciliationPolicy, merge_hybrid, to_records


def rec(record_id, source, **data):
    return Record(entity="cases", id=record_id, data=data, source=source)


class TestMergeHybrid:
    """Tests for merge_hybrid."""

    def test_remote_first_then_local_only(self):
        remote = [rec("r1", RecordSource.REMOTE), rec("r2", RecordSource.REMOTE)]
        local = [rec("local_a", RecordSource.LOCAL), rec("r1", RecordSource.LOCAL, stale=True)]

        merged = merge_hybrid(remote, local)

        assert [r.id for r in merged] == ["r1", "r2", "local_a"]
        assert merged[0].source == RecordSource.REMOTE
        assert "stale" not in merged[0]

    def test_duplicate_remote_ids_collapse(self):
        remote = [rec("r1", RecordSource.REMOTE, n=1), rec("r1", RecordSource.REMOTE, n=2)]

        merged = merge_hybrid(remote, [])

        assert len(merged) == 1

    def test_empty_sources(self):
        assert merge_hybrid([], []) == []


class TestRouting:
    """Tests for write target selection."""

    @pytest.fixture
    def hybrid(self):
        return EntityDefinition(name="cases", category=PolicyCategory.HYBRID)

    def test_create_targets(self, hybrid):
        assert ReconciliationPolicy.create_target(hybrid) == RecordSource.LOCAL
        assert ReconciliationPolicy.create_target(EntityDefinition(name="payments")) == RecordSource.REMOTE
        local_only = EntityDefinition(name="sessions", category=PolicyCategory.LOCAL_ONLY)
        assert ReconciliationPolicy.create_target(local_only) == RecordSource.LOCAL

    def test_hybrid_record_target_follows_id(self, hybrid):
        assert ReconciliationPolicy.record_target(hybrid, "local_abc") == RecordSource.LOCAL
        assert ReconciliationPolicy.record_target(hybrid, "abc") == RecordSource.REMOTE

    def test_hybrid_delete_of_remote_id_purges_local_too(self, hybrid):
        assert ReconciliationPolicy.delete_targets(hybrid, "abc") == [RecordSource.LOCAL, RecordSource.REMOTE]
        assert ReconciliationPolicy.delete_targets(hybrid, "local_abc") == [RecordSource.LOCAL]


def test_to_records_skips_rows_without_id():
    records = to_records("cases", [{"id": "1"}, {"status": "new"}, {"id": ""}], RecordSource.REMOTE)
    assert [r.id for r in records] == ["1"]
