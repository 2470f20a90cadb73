"""Insolvency notices feed endpoint."""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Query
import httpx

from ..dependencies import CachesDep, GazetteDep
from ..exceptions import GazetteError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notices"])

NOTICES_KEY = "notices"
LAST_GOOD_KEY = "notices:last-good"


@router.get("/notices")
async def get_notices(
    caches: CachesDep,
    gazette: GazetteDep,
    refresh: Optional[str] = Query(None),
):
    """Get recent insolvency notices, cached for a few minutes."""
    cache = caches.notices
    ttl_seconds = caches.notices_ttl_ms / 1000

    # Check cache (skip if refresh requested)
    if refresh != "true":
        entry = cache.get_entry(NOTICES_KEY)
        if entry:
            age = cache.age(entry)
            return {
                **entry.value,
                "cached": True,
                "cacheAge": round(age),
                "nextRefresh": round(max(ttl_seconds - age, 0)),
            }

    try:
        fresh = await gazette.fetch_notices()
    except (GazetteError, httpx.HTTPError) as e:
        logger.error("Error fetching Gazette: %s", e)

        # Serve the last good payload rather than nothing
        stale = cache.get(LAST_GOOD_KEY)
        if stale:
            return {**stale, "cached": True, "stale": True, "error": str(e)}
        raise HTTPException(status_code=500, detail=str(e))

    cache.set(NOTICES_KEY, fresh, caches.notices_ttl_ms)
    cache.set(LAST_GOOD_KEY, fresh, caches.notices_stale_ttl_ms)

    return {
        **fresh,
        "cached": False,
        "cacheAge": 0,
        "nextRefresh": round(ttl_seconds),
    }
