"""Gazette Watch FastAPI Application Entry Point."""

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import get_settings
from .dependencies import lifespan
from .routers import (
    stats_router,
    notices_router,
    financials_router,
    analyze_router,
    drafts_router,
    analytics_router,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Gazette Watch",
        description="Insolvency notice dashboard with company research and content drafting",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers with /api prefix
    app.include_router(stats_router, prefix="/api")
    app.include_router(notices_router, prefix="/api")
    app.include_router(financials_router, prefix="/api")
    app.include_router(analyze_router, prefix="/api")
    app.include_router(drafts_router, prefix="/api")
    app.include_router(analytics_router, prefix="/api")

    return app


app = create_app()


def run():
    """Run the server."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Gazette Watch running at http://localhost:%d", settings.port)
    uvicorn.run(
        "gazette_watch.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
