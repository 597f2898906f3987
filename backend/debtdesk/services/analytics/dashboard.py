"""
Dashboard summary.

Headline collection figures over every case, portfolio and payment:

- total_cases, total_portfolios
- total_collected: sum of all payment amounts
- monthly_collection: payments dated in the current UTC calendar month
- active_cases: cases in collection
- payment_plans: cases on a payment plan
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from pydantic import BaseModel

from debtdesk.domain.models.enums import CaseStatus
from debtdesk.domain.models.record import Record, parse_timestamp, utcnow
from debtdesk.infrastructure.logging import get_logger
from debtdesk.services.analytics.portfolio_stats import as_amount

logger = get_logger(__name__)


class DashboardSummary(BaseModel):
    """Headline figures for the back office dashboard."""

    total_cases: int = 0
    total_portfolios: int = 0
    total_collected: float = 0.0
    monthly_collection: float = 0.0
    active_cases: int = 0
    payment_plans: int = 0


def compute_dashboard_summary(
    cases: Iterable[Record],
    portfolios: Iterable[Record],
    payments: Iterable[Record],
    now: datetime | None = None,
) -> DashboardSummary:
    now = now or utcnow()
    cases = list(cases)
    payments = list(payments)

    monthly = 0.0
    for payment in payments:
        paid_on = parse_timestamp(payment.get("payment_date"))
        if paid_on is not None and (paid_on.year, paid_on.month) == (now.year, now.month):
            monthly += as_amount(payment.get("amount"))

    statuses = [c.get("status") for c in cases]
    return DashboardSummary(
        total_cases=len(cases),
        total_portfolios=sum(1 for _ in portfolios),
        total_collected=sum(as_amount(p.get("amount")) for p in payments),
        monthly_collection=monthly,
        active_cases=statuses.count(CaseStatus.IN_COLLECTION.value),
        payment_plans=statuses.count(CaseStatus.PAYMENT_PLAN.value),
    )


class DashboardAnalytics:
    """Loads cases, portfolios and payments through the repository."""

    def __init__(self, repo) -> None:
        self.repo = repo

    async def compute(self, now: datetime | None = None) -> DashboardSummary:
        cases = await self.repo.list("cases")
        portfolios = await self.repo.list("portfolios")
        payments = await self.repo.list("payments")

        summary = compute_dashboard_summary(cases, portfolios, payments, now)
        logger.debug_with_context(
            "Computed dashboard summary",
            context={"cases": summary.total_cases, "payments": len(payments)},
        )
        return summary
