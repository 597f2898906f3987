"""
Tests for the dashboard summary.
"""

from datetime import datetime, timezone

import pytest

from debtdesk.core.retry import RetryPolicy
from debtdesk.domain.models.enums import RecordSource
from debtdesk.domain.models.record import Record
from debtdesk.services.analytics import DashboardAnalytics, compute_dashboard_summary
from debtdesk.services.repository import HookRegistry, Repository
from debtdesk.storage import InMemoryRemoteStoreClient

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


def rec(entity, record_id, **data):
    return Record(entity=entity, id=record_id, data=data, source=RecordSource.REMOTE)


class TestComputeDashboardSummary:
    """Tests for compute_dashboard_summary."""

    def test_summary(self):
        cases = [
            rec("cases", "c1", status="in_collection"),
            rec("cases", "c2", status="in_collection"),
            rec("cases", "c3", status="payment_plan"),
            rec("cases", "c4", status="paid"),
        ]
        portfolios = [rec("portfolios", "p1"), rec("portfolios", "p2")]
        payments = [
            rec("payments", "x1", amount=100, payment_date="2024-05-02"),
            rec("payments", "x2", amount="25.5", payment_date="2024-05-19T08:00:00Z"),
            rec("payments", "x3", amount=40, payment_date="2024-04-30"),
            rec("payments", "x4", amount=10, payment_date="2023-05-10"),
            rec("payments", "x5", amount=5, payment_date="not a date"),
            rec("payments", "x6", amount=None),
        ]

        summary = compute_dashboard_summary(cases, portfolios, payments, now=NOW)

        assert summary.total_cases == 4
        assert summary.total_portfolios == 2
        assert summary.total_collected == pytest.approx(180.5)
        assert summary.monthly_collection == pytest.approx(125.5)
        assert summary.active_cases == 2
        assert summary.payment_plans == 1

    def test_empty(self):
        summary = compute_dashboard_summary([], [], [], now=NOW)

        assert summary.total_cases == 0
        assert summary.total_collected == 0.0
        assert summary.monthly_collection == 0.0


class TestDashboardAnalytics:
    """Tests for DashboardAnalytics over the repository."""

    @pytest.mark.asyncio
    async def test_counts_offline_cases(self, store):
        remote = InMemoryRemoteStoreClient(tables={
            "portfolios": [{"id": "p1", "name": "Spring"}],
            "cases": [{"id": "c1", "portfolio_id": "p1", "status": "in_collection"}],
            "payments": [{"id": "x1", "case_id": "c1", "amount": 75, "payment_date": "2024-05-01"}],
        })
        repo = Repository(store, remote, retry_policy=RetryPolicy.none(), hooks=HookRegistry())
        await repo.create("cases", {"portfolio_id": "p1", "status": "payment_plan"})

        summary = await DashboardAnalytics(repo).compute(now=NOW)

        assert summary.total_cases == 2
        assert summary.total_portfolios == 1
        assert summary.total_collected == 75.0
        assert summary.monthly_collection == 75.0
        assert summary.active_cases == 1
        assert summary.payment_plans == 1
