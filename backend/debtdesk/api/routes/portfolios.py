"""
Portfolio API Routes.
"""

from fastapi import APIRouter, Depends

from debtdesk.api.dependencies import get_repository
from debtdesk.services.analytics import PortfolioAnalytics
from debtdesk.services.repository import Repository

router = APIRouter(prefix="/portfolios", tags=["Portfolios"])


@router.get("/stats")
async def portfolio_stats(repo: Repository = Depends(get_repository)) -> dict:
    """Collection performance for every portfolio, newest first."""
    stats = await PortfolioAnalytics(repo).compute()
    return {
        "total": len(stats),
        "portfolios": [s.model_dump() for s in stats],
    }
