"""Researcher Worker - Uses Tavily to search the web for a company."""

import asyncio
import logging
from typing import Optional

from tavily import TavilyClient

from ..config import get_settings
from .state import AnalysisState, ResearchFinding

logger = logging.getLogger(__name__)


def get_tavily_client() -> TavilyClient:
    """Get Tavily client with API key."""
    settings = get_settings()
    return TavilyClient(api_key=settings.tavily_api_key)


def plan_search_queries(company_name: str, notice_type: str, company_number: Optional[str] = None) -> list[str]:
    """Queries covering the website, social accounts, news and reputation."""
    name = f'"{company_name}"'
    return [
        f"{name} official website UK company",
        f"{name} LinkedIn Twitter Facebook Instagram",
        f"{name} {notice_type.lower()} news",
        f"{name} reviews complaints group companies {company_number or ''}".strip(),
    ]


def to_finding(result: dict) -> ResearchFinding:
    return {
        "title": result.get("title", "Untitled"),
        "url": result.get("url", ""),
        "content": result.get("content", ""),
        "score": result.get("score", 0.0),
        "raw_content": result.get("raw_content"),
    }


async def researcher_node(state: AnalysisState) -> dict:
    """Researcher worker node - runs the next planned search.

    Findings are deduplicated by URL. The search count advances even when a
    search fails so the graph always terminates.
    """
    search_query = state["search_queries"][state["search_count"]]
    tavily = get_tavily_client()

    try:
        # TavilyClient is blocking, keep it off the event loop
        results = await asyncio.to_thread(
            tavily.search,
            query=search_query,
            search_depth="advanced",
            max_results=5,
            topic="general",
        )
    except Exception as e:
        logger.warning("Search failed for %r: %s", search_query, e)
        return {
            "search_count": state["search_count"] + 1,
            "messages": [
                {"role": "assistant", "content": f"Search error: {str(e)}"}
            ],
        }

    existing_urls = {f.get("url") for f in state["research_findings"]}
    unique_new = [
        to_finding(result)
        for result in results.get("results", [])
        if result.get("url") not in existing_urls
    ]

    return {
        "research_findings": state["research_findings"] + unique_new,
        "search_count": state["search_count"] + 1,
        "messages": [
            {"role": "assistant", "content": f"Searched for: {search_query}\nFound {len(unique_new)} new results."}
        ],
    }
