"""Analytics derived from repository data."""

from debtdesk.services.analytics.dashboard import (
    DashboardAnalytics,
    DashboardSummary,
    compute_dashboard_summary,
)
from debtdesk.services.analytics.portfolio_stats import (
    PortfolioAnalytics,
    PortfolioStats,
    compute_portfolio_stats,
)

__all__ = [
    "DashboardAnalytics",
    "DashboardSummary",
    "PortfolioAnalytics",
    "PortfolioStats",
    "compute_dashboard_summary",
    "compute_portfolio_stats",
]
