"""API Routers for Gazette Watch."""

from .stats import router as stats_router
from .notices import router as notices_router
from .financials import router as financials_router
from .analyze import router as analyze_router
from .drafts import router as drafts_router
from .analytics import router as analytics_router

__all__ = [
    "stats_router",
    "notices_router",
    "financials_router",
    "analyze_router",
    "drafts_router",
    "analytics_router",
]
