"""
Health API Routes.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter

from debtdesk import __version__
from debtdesk.api.dependencies import has_repository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
    }


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """Readiness check: the repository has been wired."""
    ready = has_repository()
    return {
        "ready": ready,
        "timestamp": datetime.now().isoformat(),
        "checks": {
            "repository": "ok" if ready else "missing",
        },
    }
