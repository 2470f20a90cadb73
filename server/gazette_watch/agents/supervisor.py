"""Supervisor - Orchestrates the company research workflow using LangGraph."""

from typing import Literal, Optional

from langgraph.graph import StateGraph, END

from .state import AnalysisState, ResearchFinding
from .researcher import plan_search_queries, researcher_node
from .writer import writer_node


async def supervisor_node(state: AnalysisState) -> dict:
    """Supervisor node - entry point of the workflow.

    Routing decisions are made by should_continue_research.
    """
    if state["search_count"] == 0:
        return {
            "messages": [
                {"role": "assistant", "content": f"Starting web research on: {state['company_name']}"}
            ],
        }
    return {}


def should_continue_research(state: AnalysisState) -> Literal["research", "write"]:
    """Keep searching until every planned query ran or the limit is hit."""
    if state["search_count"] >= state["max_searches"]:
        return "write"
    if state["search_count"] >= len(state["search_queries"]):
        return "write"
    return "research"


def create_research_graph():
    """Create the compiled research graph.

    Graph structure:

    START -> supervisor -> (conditional) -> researcher -> supervisor (loop)
                                        -> writer -> END
    """
    workflow = StateGraph(AnalysisState)

    workflow.add_node("supervisor", supervisor_node)
    workflow.add_node("researcher", researcher_node)
    workflow.add_node("writer", writer_node)

    workflow.set_entry_point("supervisor")

    workflow.add_conditional_edges(
        "supervisor",
        should_continue_research,
        {
            "research": "researcher",
            "write": "writer",
        }
    )

    # Researcher loops back to supervisor for evaluation
    workflow.add_edge("researcher", "supervisor")
    workflow.add_edge("writer", END)

    return workflow.compile()


async def run_company_research(
    company_name: str,
    notice_type: str,
    notice_date: str,
    company_number: Optional[str] = None,
    max_searches: int = 4,
) -> tuple[str, list[ResearchFinding]]:
    """Run the research graph and return the web research text and sources."""
    graph = create_research_graph()

    initial_state: AnalysisState = {
        "messages": [],
        "company_name": company_name,
        "company_number": company_number,
        "notice_type": notice_type,
        "notice_date": notice_date,
        "search_queries": plan_search_queries(company_name, notice_type, company_number),
        "research_findings": [],
        "search_count": 0,
        "max_searches": max_searches,
        "web_research": "",
    }

    final_state = await graph.ainvoke(initial_state)
    return final_state.get("web_research", ""), final_state.get("research_findings", [])


# Export for convenience
__all__ = ["create_research_graph", "run_company_research", "AnalysisState"]
