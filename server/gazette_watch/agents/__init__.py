"""Company research agent."""

from .state import AnalysisState
from .supervisor import create_research_graph, run_company_research

__all__ = ["AnalysisState", "create_research_graph", "run_company_research"]
