"""
FastAPI Application for DebtDesk.

Main application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from debtdesk import __version__
from debtdesk.api.dependencies import has_repository, set_repository
from debtdesk.api.routes import dashboard_router, entities_router, health_router, portfolios_router
from debtdesk.core.config import get_config
from debtdesk.core.exceptions import (
    NotFound,
    RemoteUnavailable,
    RepositoryError,
    StorageWriteError,
    ValidationError,
)
from debtdesk.infrastructure.logging.logging_config import get_logger, setup_logging
from debtdesk.services.repository import build_repository

setup_logging()

logger = get_logger(__name__)

ERROR_STATUS = {
    NotFound: 404,
    ValidationError: 422,
    RemoteUnavailable: 503,
    StorageWriteError: 507,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting DebtDesk API server...")

    owned = None
    if not has_repository():
        config = get_config()
        setup_logging(config.logging.level, enable_file=config.logging.enable_file)
        owned = build_repository(config)
        await owned.store.init()
        set_repository(owned)
        logger.info("Repository initialized")

    yield

    logger.info("Shutting down DebtDesk API server...")
    if owned is not None:
        await owned.close()
        set_repository(None)


def status_for(exc: RepositoryError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 500


def create_app(
    title: str = "DebtDesk API",
    version: str = __version__,
    description: str = "Debt collection back office record API",
    **kwargs: Any,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=title,
        version=version,
        description=description,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        **kwargs,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/api", tags=["Health"])
    app.include_router(entities_router, prefix="/api", tags=["Entities"])
    app.include_router(portfolios_router, prefix="/api", tags=["Portfolios"])
    app.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])

    @app.exception_handler(RepositoryError)
    async def repository_exception_handler(request: Request, exc: RepositoryError):
        status = status_for(exc)
        if status >= 500:
            logger.error_with_context(f"{exc.__class__.__name__}: {exc.message}", context=exc.details)
        return JSONResponse(
            status_code=status,
            content={
                "success": False,
                "error": exc.__class__.__name__,
                "detail": exc.message,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "detail": str(exc),
            },
        )

    @app.get("/")
    async def root():
        return {
            "name": "DebtDesk API",
            "version": version,
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()
