"""Company analysis endpoint - Companies House plus web research."""

import logging
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException
import httpx

from ..agents import run_company_research
from ..dependencies import CachesDep, CompaniesHouseDep, SettingsDep
from ..exceptions import CompaniesHouseError
from ..services.cache import TTLCache
from ..services.prompts import build_analysis_header

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analyze"])


class AnalyzeRequest(BaseModel):
    """Request to research a company named in a notice."""
    companyName: str = Field(..., min_length=1, description="Company name from the notice")
    noticeType: Optional[str] = Field(default=None, description="Gazette notice type")
    noticeDate: Optional[str] = Field(default=None, description="Notice publication date")
    refresh: bool = Field(default=False, description="Skip the analysis cache")


@router.post("/analyze")
async def analyze_company(
    request: AnalyzeRequest,
    settings: SettingsDep,
    caches: CachesDep,
    companies_house: CompaniesHouseDep,
):
    """Build a company analysis from Companies House and web research."""
    if not settings.anthropic_api_key:
        raise HTTPException(status_code=500, detail="Anthropic API key not configured")

    notice_type = request.noticeType or "Insolvency"
    cache_key = TTLCache.generate_key(request.companyName, notice_type)
    if not request.refresh:
        cached = caches.analysis.get(cache_key)
        if cached:
            return {**cached, "cached": True}

    # Step 1: Companies House
    bundle = None
    ch_error = None
    if companies_house.configured:
        try:
            bundle = await companies_house.get_company_bundle(request.companyName, with_financials=False)
        except (CompaniesHouseError, httpx.HTTPError) as e:
            logger.error("Companies House error for %s: %s", request.companyName, e)
            ch_error = str(e)

    header = build_analysis_header(
        request.companyName,
        bundle,
        error=ch_error,
        configured=companies_house.configured,
    )
    profile = bundle.profile if bundle else None

    # Step 2: Web research
    try:
        web_research, findings = await run_company_research(
            company_name=request.companyName,
            notice_type=notice_type,
            notice_date=request.noticeDate or "Recent",
            company_number=bundle.company_number if bundle else None,
            max_searches=settings.max_searches,
        )
    except Exception as e:
        logger.error("Analysis error for %s: %s", request.companyName, e)
        raise HTTPException(status_code=500, detail=str(e) or "Failed to analyze company")

    result = {
        "analysis": f"{header}\n\n---\n\nWEB RESEARCH\n\n{web_research}\n",
        "companyName": (profile or {}).get("company_name") or request.companyName,
        "companyNumber": bundle.company_number if bundle else None,
        "companyStatus": (profile or {}).get("company_status"),
        "webSources": [{"title": f["title"], "url": f["url"]} for f in findings],
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "sources": {
            "companiesHouse": profile is not None,
            "webSearch": bool(findings),
        },
    }

    caches.analysis.set(cache_key, result, caches.analysis_ttl_ms)
    return result
