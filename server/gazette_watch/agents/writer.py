"""Writer Worker - Turns web findings into the analysis text."""

from langchain_anthropic import ChatAnthropic

from ..config import get_settings
from ..services.drafting import content_text
from .state import AnalysisState, ResearchFinding


def get_llm() -> ChatAnthropic:
    """Get Claude LLM for writing the research section."""
    settings = get_settings()
    return ChatAnthropic(
        model=settings.analysis_model,
        api_key=settings.anthropic_api_key,
        max_tokens=settings.analysis_max_tokens,
    )


def format_findings(findings: list[ResearchFinding]) -> str:
    """Format research findings for the prompt."""
    formatted = []

    for i, finding in enumerate(findings, 1):
        content = finding.get("content", "")
        raw_content = finding.get("raw_content") or ""

        # Use raw_content if available and longer
        full_content = raw_content if len(raw_content) > len(content) else content
        if len(full_content) > 2000:
            full_content = full_content[:2000] + "..."

        formatted.append(f"""
SOURCE {i}: {finding.get("title", "Untitled")}
URL: {finding.get("url", "")}

{full_content}
""")

    return "\n---\n".join(formatted) or "No web results were found."


def build_research_prompt(state: AnalysisState) -> str:
    company_number = f"Company Number: {state['company_number']}\n" if state.get("company_number") else ""

    return f"""You are a business intelligence analyst researching a UK company that has entered insolvency.

Company Name: {state["company_name"]}
{company_number}Notice Type: {state["notice_type"]}
Notice Date: {state["notice_date"]}

I already have Companies House data. Using the web search results below, report on:

1. COMPANY WEBSITE
The official company website URL, and whether it is still active.

2. SOCIAL MEDIA ACCOUNTS
Official LinkedIn, Twitter/X, Facebook and Instagram accounts, with follower counts if visible.

3. RECENT NEWS (Last 30 Days)
News articles, press releases or media coverage: publication, headline, date and brief summary.

4. BUSINESS ANALYSIS
What the company does or did, visible signs of trouble before insolvency, customer reviews or complaints, and any connected companies or group structure.

WEB SEARCH RESULTS ({len(state["research_findings"])} sources)
{format_findings(state["research_findings"])}

FORMATTING RULES:
- Use plain text only, NO markdown (no **, no ##, no bullets like -)
- Use ALL CAPS for section headers
- Use line breaks to separate items
- Be specific with URLs and dates
- State clearly if you cannot find something"""


async def writer_node(state: AnalysisState) -> dict:
    """Writer worker node - synthesizes the findings into plain text."""
    llm = get_llm()
    response = await llm.ainvoke(build_research_prompt(state))

    return {
        "web_research": content_text(response.content).strip(),
        "messages": [
            {"role": "assistant", "content": "Web research completed."}
        ],
    }
