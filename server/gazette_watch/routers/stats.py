"""Health check and cache stats endpoints."""

import platform
import sys
from fastapi import APIRouter

from .. import __version__
from ..dependencies import CachesDep, LinkDatabaseDep, SettingsDep

router = APIRouter(tags=["stats"])


@router.get("/health")
async def health_check(settings: SettingsDep, links: LinkDatabaseDep):
    """Health check and status endpoint."""
    return {
        "status": "ok",
        "version": __version__,
        "sources": {
            "anthropic": bool(settings.anthropic_api_key),
            "tavily": bool(settings.tavily_api_key),
            "companiesHouse": bool(settings.companies_house_api_key),
        },
        "internalLinks": len(links),
        "platform": platform.system().lower(),
        "pythonVersion": sys.version,
    }


@router.get("/cache/stats")
async def get_cache_stats(caches: CachesDep):
    """Size and expiry counts for every cache."""
    return {name: cache.stats() for name, cache in caches.all().items()}
