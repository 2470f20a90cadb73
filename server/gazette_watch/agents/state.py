"""LangGraph state definitions for the company research agent."""

from typing import TypedDict, Annotated, Sequence, Optional
from langgraph.graph.message import add_messages


class ResearchFinding(TypedDict):
    """A single web search result from Tavily."""
    title: str
    url: str
    content: str
    score: float
    raw_content: Optional[str]


class AnalysisState(TypedDict):
    """State for the company research workflow.

    This state is passed between all nodes in the research graph.
    """
    # Message history for context
    messages: Annotated[Sequence, add_messages]

    # The company under research and the notice that triggered it
    company_name: str
    company_number: Optional[str]
    notice_type: str
    notice_date: str

    # Planned search queries, run in order by the researcher
    search_queries: list[str]

    # Accumulated findings from Tavily searches
    research_findings: list[ResearchFinding]

    # Current search iteration count
    search_count: int

    # Maximum allowed searches (safety limit)
    max_searches: int

    # The plain-text WEB RESEARCH section written from the findings
    web_research: str
