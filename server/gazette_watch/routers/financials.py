"""Company financials endpoint."""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Query
import httpx

from ..dependencies import CachesDep, CompaniesHouseDep
from ..exceptions import CompaniesHouseError
from ..services.cache import TTLCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["financials"])


@router.get("/financials")
async def get_financials(
    caches: CachesDep,
    companies_house: CompaniesHouseDep,
    company: Optional[str] = Query(None),
):
    """Get headline figures from a company's latest filed accounts."""
    if not company:
        raise HTTPException(status_code=400, detail="Company name required")

    if not companies_house.configured:
        raise HTTPException(status_code=500, detail="API key not configured")

    cache_key = TTLCache.generate_key(company)
    cached = caches.financials.get(cache_key)
    if cached:
        return {**cached, "cached": True}

    try:
        match = await companies_house.search_company(company)
        if not match or not match.get("company_number"):
            # Not found is not cached so a later filing can still be picked up
            return {"found": False, "companyName": company, "message": "Company not found"}

        number = match["company_number"]
        accounts = await companies_house.get_financials(number)
    except (CompaniesHouseError, httpx.HTTPError) as e:
        logger.error("Financials error for %s: %s", company, e)
        raise HTTPException(status_code=500, detail=str(e))

    result = {
        "found": True,
        "companyName": match.get("title"),
        "companyNumber": number,
        "financials": None,
    }
    if accounts.accounts_date is None:
        result["message"] = "No accounts filed"
    else:
        result.update({
            "accountsDate": accounts.accounts_date,
            "accountsType": accounts.accounts_type,
            "financials": accounts.financials.to_dict() if accounts.financials else None,
            "message": "Financials extracted" if accounts.financials else "Could not parse accounts",
        })

    caches.financials.set(cache_key, result, caches.financials_ttl_ms)
    return result
