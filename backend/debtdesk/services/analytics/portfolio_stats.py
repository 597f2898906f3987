"""
Portfolio performance metrics.

Derived per portfolio from its cases and their completed payments:

- cases_count, payments_count
- total_collected: sum of completed payment amounts
- collection_rate: total_collected / total_face_value * 100 (0 without face value)
- success_percent: share of cases paid or settled
- bankruptcy_percent, deceased_percent, disputed_percent
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable

from pydantic import BaseModel

from debtdesk.domain.models.enums import CaseStatus, PaymentStatus
from debtdesk.domain.models.record import Record
from debtdesk.infrastructure.logging import get_logger

logger = get_logger(__name__)

SUCCESS_STATUSES = frozenset({CaseStatus.PAID.value, CaseStatus.SETTLED.value})


class PortfolioStats(BaseModel):
    """Metrics for one portfolio."""

    portfolio_id: str
    name: str | None = None
    cases_count: int = 0
    payments_count: int = 0
    total_collected: float = 0.0
    collection_rate: float = 0.0
    success_percent: float = 0.0
    bankruptcy_percent: float = 0.0
    deceased_percent: float = 0.0
    disputed_percent: float = 0.0


def as_amount(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _percent(count: int, total: int) -> float:
    return count / total * 100 if total > 0 else 0.0


def compute_portfolio_stats(
    portfolios: Iterable[Record],
    cases: Iterable[Record],
    payments: Iterable[Record],
) -> list[PortfolioStats]:
    """Compute stats for each portfolio, in the order given."""
    cases_by_portfolio: dict[str, list[Record]] = defaultdict(list)
    portfolio_of_case: dict[str, str] = {}
    for case in cases:
        portfolio_id = case.get("portfolio_id")
        if portfolio_id is None:
            continue
        cases_by_portfolio[str(portfolio_id)].append(case)
        portfolio_of_case[case.id] = str(portfolio_id)

    payments_by_portfolio: dict[str, list[Record]] = defaultdict(list)
    for payment in payments:
        if payment.get("status") != PaymentStatus.COMPLETED.value:
            continue
        portfolio_id = portfolio_of_case.get(str(payment.get("case_id")))
        if portfolio_id is not None:
            payments_by_portfolio[portfolio_id].append(payment)

    results = []
    for portfolio in portfolios:
        portfolio_cases = cases_by_portfolio.get(portfolio.id, [])
        portfolio_payments = payments_by_portfolio.get(portfolio.id, [])
        statuses = [c.get("status") for c in portfolio_cases]
        total = len(portfolio_cases)

        collected = sum(as_amount(p.get("amount")) for p in portfolio_payments)
        face_value = as_amount(portfolio.get("total_face_value"))

        results.append(
            PortfolioStats(
                portfolio_id=portfolio.id,
                name=portfolio.get("name"),
                cases_count=total,
                payments_count=len(portfolio_payments),
                total_collected=collected,
                collection_rate=collected / face_value * 100 if face_value > 0 else 0.0,
                success_percent=_percent(sum(s in SUCCESS_STATUSES for s in statuses), total),
                bankruptcy_percent=_percent(statuses.count(CaseStatus.BANKRUPTCY.value), total),
                deceased_percent=_percent(statuses.count(CaseStatus.DECEASED.value), total),
                disputed_percent=_percent(statuses.count(CaseStatus.DISPUTED.value), total),
            )
        )
    return results


class PortfolioAnalytics:
    """Loads portfolios, cases and payments through the repository."""

    def __init__(self, repo) -> None:
        self.repo = repo

    async def compute(self) -> list[PortfolioStats]:
        portfolios = await self.repo.list("portfolios", order_by="-created_at")
        cases = await self.repo.list("cases")
        payments = await self.repo.filter("payments", {"status": PaymentStatus.COMPLETED.value})

        stats = compute_portfolio_stats(portfolios, cases, payments)
        logger.info_with_context(
            f"Computed stats for {len(stats)} portfolios",
            context={"cases": len(cases), "payments": len(payments)},
        )
        return stats
