"""Blog and LinkedIn draft endpoints."""

import logging
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException
import httpx

from ..dependencies import CachesDep, CompaniesHouseDep, LinkDatabaseDep, SettingsDep
from ..exceptions import CompaniesHouseError
from ..services.cache import TTLCache
from ..services.companies_house import CompaniesHouseClient, CompanyBundle, SIC_CODES
from ..services.drafting import generate_text
from ..services.keywords import calculate_keyword_density, get_keyword_data
from ..services.linker import insert_internal_links
from ..services.prompts import generate_blog_prompt, generate_linkedin_prompt, validate_blog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["drafts"])

DEFAULT_NOTICE_LINK = "https://www.thegazette.co.uk"


class DraftRequest(BaseModel):
    """Request to draft content about a company named in a notice."""
    companyName: str = Field(..., min_length=1, description="Company name from the notice")
    noticeType: Optional[str] = Field(default=None, description="Gazette notice type")
    noticeDate: Optional[str] = Field(default=None, description="Notice publication date")
    noticeLink: Optional[str] = Field(default=None, description="Gazette notice page")


async def fetch_bundle(companies_house: CompaniesHouseClient, company_name: str) -> Optional[CompanyBundle]:
    """Companies House data for a draft; failures leave the draft without it."""
    if not companies_house.configured:
        return None
    try:
        return await companies_house.get_company_bundle(company_name)
    except (CompaniesHouseError, httpx.HTTPError) as e:
        logger.error("Companies House error for %s: %s", company_name, e)
        return None


def _company_fields(request: DraftRequest, bundle: Optional[CompanyBundle]) -> dict:
    profile = bundle.profile if bundle else None
    return {
        "companyName": (profile or {}).get("company_name") or request.companyName,
        "companyNumber": bundle.company_number if bundle else None,
    }


def _sources(bundle: Optional[CompanyBundle]) -> dict:
    return {
        "companiesHouse": bool(bundle and bundle.profile),
        "financials": bool(bundle and bundle.financials.financials),
    }


@router.post("/draft-blog")
async def draft_blog(
    request: DraftRequest,
    settings: SettingsDep,
    caches: CachesDep,
    companies_house: CompaniesHouseDep,
    links: LinkDatabaseDep,
):
    """Draft an SEO blog post with internal links."""
    if not settings.anthropic_api_key:
        raise HTTPException(status_code=500, detail="Anthropic API key not configured")

    notice_type = request.noticeType or "Administration"
    cache_key = TTLCache.generate_key(request.companyName, request.noticeType or "insolvency")
    cached = caches.drafts.get(cache_key)
    if cached:
        return {**cached, "cached": True}

    # Step 1: Companies House data
    bundle = await fetch_bundle(companies_house, request.companyName)
    company_number = bundle.company_number if bundle else None

    # Step 2: Keyword targets
    sic_codes = (bundle.profile or {}).get("sic_codes") if bundle else None
    keywords = get_keyword_data(request.companyName, notice_type, sic_codes, SIC_CODES)

    # Step 3: Draft with Claude
    prompt = generate_blog_prompt(
        company_name=request.companyName,
        company_number=company_number,
        notice_type=notice_type,
        notice_date=request.noticeDate or "Recent",
        notice_link=request.noticeLink or DEFAULT_NOTICE_LINK,
        bundle=bundle,
        primary_keyword=keywords.primary.keyword,
        secondary_keywords=keywords.secondary,
        related_terms=keywords.related,
        search_volume=keywords.primary.volume,
        word_count=settings.blog_word_count,
    )
    try:
        blog_text = await generate_text(prompt, settings.blog_max_tokens)
    except Exception as e:
        logger.error("Blog generation error for %s: %s", request.companyName, e)
        raise HTTPException(status_code=500, detail=str(e) or "Failed to generate blog")

    if not blog_text:
        raise HTTPException(status_code=500, detail="No blog content generated")

    # Step 4: Validate, link, measure
    validation = validate_blog(blog_text)
    linked = insert_internal_links(blog_text, links, settings.max_internal_links)
    density = calculate_keyword_density(linked.document, keywords.primary.keyword)

    result = {
        "blog": linked.document,
        "metadata": {
            **_company_fields(request, bundle),
            "title": validation.title,
            "metaDescription": validation.meta_description,
            "wordCount": validation.word_count,
            "primaryKeyword": keywords.primary.keyword,
            "searchVolume": keywords.primary.volume,
            "keywordDensity": density.to_dict(),
            "internalLinks": linked.links_added,
            "linksConsidered": [scored.to_dict() for scored in linked.links_considered],
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "validation": {
                "passed": validation.valid,
                "warnings": validation.warnings,
                "errors": validation.errors,
            },
            "sources": {
                **_sources(bundle),
                "keywordResearch": keywords.primary.source,
            },
        },
    }

    caches.drafts.set(cache_key, result, caches.drafts_ttl_ms)
    return result


@router.post("/draft-linkedin")
async def draft_linkedin(
    request: DraftRequest,
    settings: SettingsDep,
    caches: CachesDep,
    companies_house: CompaniesHouseDep,
):
    """Draft a plain-text LinkedIn post."""
    if not settings.anthropic_api_key:
        raise HTTPException(status_code=500, detail="Anthropic API key not configured")

    # Separate cache namespace from blog posts
    cache_key = TTLCache.generate_key(f"{request.companyName}_linkedin", request.noticeType or "insolvency")
    cached = caches.drafts.get(cache_key)
    if cached:
        return {**cached, "cached": True}

    bundle = await fetch_bundle(companies_house, request.companyName)

    prompt = generate_linkedin_prompt(
        company_name=request.companyName,
        company_number=bundle.company_number if bundle else None,
        notice_type=request.noticeType or "Administration",
        notice_date=request.noticeDate or "Recent",
        notice_link=request.noticeLink or DEFAULT_NOTICE_LINK,
        bundle=bundle,
    )
    try:
        post_text = await generate_text(prompt, settings.linkedin_max_tokens)
    except Exception as e:
        logger.error("LinkedIn post generation error for %s: %s", request.companyName, e)
        raise HTTPException(status_code=500, detail=str(e) or "Failed to generate LinkedIn post")

    if not post_text:
        raise HTTPException(status_code=500, detail="No LinkedIn post content generated")

    result = {
        "post": post_text,
        "metadata": {
            **_company_fields(request, bundle),
            "characterCount": len(post_text),
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "sources": _sources(bundle),
        },
    }

    caches.drafts.set(cache_key, result, caches.drafts_ttl_ms)
    return result
