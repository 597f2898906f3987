"""
Tests for portfolio analytics.
"""

import pytest

from debtdesk.core.retry import RetryPolicy
from debtdesk.domain.models.enums import RecordSource
from debtdesk.domain.models.record import Record
from debtdesk.services.analytics import PortfolioAnalytics, compute_portfolio_stats
from debtdesk.services.repository import HookRegistry, Repository
from debtdesk.storage import InMemoryRemoteStoreClient


def rec(entity, record_id, **data):
    return Record(entity=entity, id=record_id, data=data, source=RecordSource.REMOTE)


class TestComputePortfolioStats:
    """Tests for compute_portfolio_stats."""

    def test_metrics(self):
        portfolios = [rec("portfolios", "p1", name="Spring", total_face_value=1000)]
        cases = [
            rec("cases", "c1", portfolio_id="p1", status="paid"),
            rec("cases", "c2", portfolio_id="p1", status="settled"),
            rec("cases", "c3", portfolio_id="p1", status="bankruptcy"),
            rec("cases", "c4", portfolio_id="p1", status="disputed"),
            rec("cases", "c5", portfolio_id="p2", status="paid"),
        ]
        payments = [
            rec("payments", "x1", case_id="c1", amount=100, status="completed"),
            rec("payments", "x2", case_id="c2", amount="50", status="completed"),
            rec("payments", "x3", case_id="c2", amount=999, status="failed"),
            rec("payments", "x4", case_id="c5", amount=70, status="completed"),
        ]

        [stats] = compute_portfolio_stats(portfolios, cases, payments)

        assert stats.cases_count == 4
        assert stats.payments_count == 2
        assert stats.total_collected == 150.0
        assert stats.collection_rate == pytest.approx(15.0)
        assert stats.success_percent == pytest.approx(50.0)
        assert stats.bankruptcy_percent == pytest.approx(25.0)
        assert stats.disputed_percent == pytest.approx(25.0)
        assert stats.deceased_percent == 0.0

    def test_no_face_value_or_cases(self):
        [stats] = compute_portfolio_stats([rec("portfolios", "p1", name="Empty")], [], [])

        assert stats.collection_rate == 0.0
        assert stats.success_percent == 0.0


class TestPortfolioAnalytics:
    """Tests for PortfolioAnalytics over the repository."""

    @pytest.mark.asyncio
    async def test_includes_offline_cases(self, store):
        remote = InMemoryRemoteStoreClient(tables={
            "portfolios": [
                {"id": "p1", "name": "Old", "total_face_value": 200, "created_at": "2023-01-01T00:00:00+00:00"},
                {"id": "p2", "name": "New", "total_face_value": 0, "created_at": "2024-01-01T00:00:00+00:00"},
            ],
            "cases": [{"id": "c1", "portfolio_id": "p1", "status": "paid"}],
            "payments": [{"id": "x1", "case_id": "c1", "amount": 50, "status": "completed"}],
        })
        repo = Repository(store, remote, retry_policy=RetryPolicy.none(), hooks=HookRegistry())
        await repo.create("cases", {"portfolio_id": "p1", "status": "deceased"})

        stats = await PortfolioAnalytics(repo).compute()

        assert [s.portfolio_id for s in stats] == ["p2", "p1"]
        old = stats[1]
        assert old.cases_count == 2
        assert old.collection_rate == pytest.approx(25.0)
        assert old.deceased_percent == pytest.approx(50.0)
