"""Subscription and traffic analytics endpoint."""

import logging
from fastapi import APIRouter, HTTPException, Query
from google.api_core.exceptions import GoogleAPIError

from ..dependencies import AnalyticsDep, CachesDep
from ..exceptions import AnalyticsError
from ..services.cache import TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analytics"])


@router.get("/analytics")
async def get_analytics(
    caches: CachesDep,
    analytics: AnalyticsDep,
    start_date: str = Query("2020-01-01"),
    end_date: str = Query("today"),
):
    """Conversion KPIs, trends and channel breakdown from GA4."""
    if not analytics.configured:
        raise HTTPException(status_code=500, detail="Google Analytics not configured")

    cache_key = TTLCache.generate_key(start_date, end_date)
    cached = caches.analytics.get(cache_key)
    if cached:
        return {**cached, "cached": True}

    try:
        result = await analytics.fetch_report(start_date, end_date)
    except (AnalyticsError, GoogleAPIError) as e:
        logger.error("Analytics error for %s..%s: %s", start_date, end_date, e)
        raise HTTPException(status_code=500, detail=str(e) or "Failed to fetch analytics data")

    caches.analytics.set(cache_key, result, caches.analytics_ttl_ms)
    return {**result, "cached": False}
