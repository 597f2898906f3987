"""
Dashboard API Routes.
"""

from fastapi import APIRouter, Depends

from debtdesk.api.dependencies import get_repository
from debtdesk.services.analytics import DashboardAnalytics
from debtdesk.services.repository import Repository

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def dashboard_stats(repo: Repository = Depends(get_repository)) -> dict:
    """Headline collection figures across all portfolios."""
    summary = await DashboardAnalytics(repo).compute()
    return summary.model_dump()
