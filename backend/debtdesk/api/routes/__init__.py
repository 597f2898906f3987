from debtdesk.api.routes.dashboard import router as dashboard_router
from debtdesk.api.routes.entities import router as entities_router
from debtdesk.api.routes.health import router as health_router
from debtdesk.api.routes.portfolios import router as portfolios_router

__all__ = ["dashboard_router", "entities_router", "health_router", "portfolios_router"]
