"""Dependency injection for the FastAPI app.

Services are built once in the lifespan, stored on ``app.state`` and handed
to route handlers through ``Depends``.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request

from .config import Settings, get_settings
from .services.analytics import AnalyticsClient
from .services.cache import TTLCache
from .services.companies_house import CompaniesHouseClient
from .services.gazette import GazetteClient
from .services.linker import LinkRecord, load_link_database

logger = logging.getLogger(__name__)


@dataclass
class CacheRegistry:
    """One cache per purpose, each with its own size and TTL."""
    notices: TTLCache[dict]
    financials: TTLCache[dict]
    analysis: TTLCache[dict]
    drafts: TTLCache[dict]
    analytics: TTLCache[dict]
    notices_ttl_ms: int
    notices_stale_ttl_ms: int
    financials_ttl_ms: int
    analysis_ttl_ms: int
    drafts_ttl_ms: int
    analytics_ttl_ms: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheRegistry":
        interval = settings.cache_cleanup_interval
        return cls(
            notices=TTLCache(settings.notices_cache_size, name="notices", cleanup_interval=interval),
            financials=TTLCache(settings.financials_cache_size, name="financials", cleanup_interval=interval),
            analysis=TTLCache(settings.analysis_cache_size, name="analysis", cleanup_interval=interval),
            drafts=TTLCache(settings.draft_cache_size, name="drafts", cleanup_interval=interval),
            analytics=TTLCache(settings.analytics_cache_size, name="analytics", cleanup_interval=interval),
            notices_ttl_ms=settings.notices_cache_ttl * 1000,
            notices_stale_ttl_ms=settings.notices_stale_ttl * 1000,
            financials_ttl_ms=settings.financials_cache_ttl * 1000,
            analysis_ttl_ms=settings.analysis_cache_ttl * 1000,
            drafts_ttl_ms=settings.draft_cache_ttl * 1000,
            analytics_ttl_ms=settings.analytics_cache_ttl * 1000,
        )

    def all(self) -> dict[str, TTLCache]:
        return {
            "notices": self.notices,
            "financials": self.financials,
            "analysis": self.analysis,
            "drafts": self.drafts,
            "analytics": self.analytics,
        }

    def start(self) -> None:
        for cache in self.all().values():
            cache.start()

    async def stop(self) -> None:
        for cache in self.all().values():
            await cache.stop()


def build_services(settings: Settings) -> dict[str, Any]:
    """Construct every service the routers depend on."""
    return {
        "caches": CacheRegistry.from_settings(settings),
        "companies_house": CompaniesHouseClient(
            api_key=settings.companies_house_api_key,
            base_url=settings.companies_house_base_url,
            document_url=settings.companies_house_document_url,
            timeout=settings.http_timeout,
        ),
        "gazette": GazetteClient(
            base_url=settings.gazette_base_url,
            page_size=settings.gazette_page_size,
            max_pages=settings.gazette_max_pages,
            lookback_days=settings.gazette_lookback_days,
            timeout=settings.http_timeout,
        ),
        "link_database": load_link_database(settings.link_database_file),
        "analytics": AnalyticsClient(
            property_id=settings.ga4_property_id,
            credentials_json=settings.google_service_account_json,
            show_revenue=settings.show_revenue,
        ),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build services on startup, stop cache sweeps on shutdown."""
    services = build_services(get_settings())
    for name, service in services.items():
        setattr(app.state, name, service)

    caches: CacheRegistry = app.state.caches
    caches.start()
    logger.info("Services initialized, %d internal links loaded", len(app.state.link_database))

    yield

    await caches.stop()
    for name in services:
        delattr(app.state, name)
    logger.info("Services shut down")


def _from_state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise RuntimeError(f"{name} not initialized. Check lifespan setup.")
    return service


def get_caches(request: Request) -> CacheRegistry:
    return _from_state(request, "caches")


def get_companies_house(request: Request) -> CompaniesHouseClient:
    return _from_state(request, "companies_house")


def get_gazette(request: Request) -> GazetteClient:
    return _from_state(request, "gazette")


def get_link_database(request: Request) -> list[LinkRecord]:
    return _from_state(request, "link_database")


def get_analytics(request: Request) -> AnalyticsClient:
    return _from_state(request, "analytics")


# Type aliases for cleaner dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
CachesDep = Annotated[CacheRegistry, Depends(get_caches)]
CompaniesHouseDep = Annotated[CompaniesHouseClient, Depends(get_companies_house)]
GazetteDep = Annotated[GazetteClient, Depends(get_gazette)]
LinkDatabaseDep = Annotated[list[LinkRecord], Depends(get_link_database)]
AnalyticsDep = Annotated[AnalyticsClient, Depends(get_analytics)]
