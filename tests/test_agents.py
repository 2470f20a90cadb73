"""
Tests for the company research graph.
"""

from __future__ import annotations

import threading

import pytest

from gazette_watch.agents import researcher, supervisor
from gazette_watch.agents.researcher import plan_search_queries, researcher_node
from gazette_watch.agents.supervisor import run_company_research, should_continue_research
from gazette_watch.agents.writer import format_findings


class FakeTavily:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.queries = []
        self.threads = []

    def search(self, query, **kwargs):
        self.queries.append(query)
        self.threads.append(threading.get_ident())
        if self.error:
            raise self.error
        return {"results": self.results}


def base_state(**overrides) -> dict:
    state = {
        "messages": [],
        "company_name": "Acme Widgets Ltd",
        "company_number": None,
        "notice_type": "Administration",
        "notice_date": "1 May 2024",
        "search_queries": plan_search_queries("Acme Widgets Ltd", "Administration"),
        "research_findings": [],
        "search_count": 0,
        "max_searches": 4,
        "web_research": "",
    }
    state.update(overrides)
    return state


def test_plan_search_queries():
    queries = plan_search_queries("Acme Widgets Ltd", "Administration", "01234567")

    assert len(queries) == 4
    assert queries[0] == '"Acme Widgets Ltd" official website UK company'
    assert queries[2] == '"Acme Widgets Ltd" administration news'
    assert queries[3].endswith("01234567")


def test_should_continue_research():
    assert should_continue_research(base_state()) == "research"
    assert should_continue_research(base_state(search_count=4)) == "write"
    assert should_continue_research(base_state(search_count=1, max_searches=1)) == "write"


def test_format_findings():
    assert format_findings([]) == "No web results were found."

    text = format_findings([
        {"title": "Acme", "url": "https://acme.example", "content": "short", "score": 0.9,
         "raw_content": "x" * 3000},
    ])
    assert "SOURCE 1: Acme" in text
    assert "x" * 2000 + "..." in text


@pytest.mark.anyio
async def test_researcher_deduplicates_by_url(monkeypatch):
    fake = FakeTavily(results=[
        {"title": "Acme", "url": "https://acme.example", "content": "Home"},
        {"title": "News", "url": "https://news.example/acme", "content": "Story"},
    ])
    monkeypatch.setattr(researcher, "get_tavily_client", lambda: fake)

    existing = [{"title": "Acme", "url": "https://acme.example", "content": "", "score": 0.0, "raw_content": None}]
    update = await researcher_node(base_state(research_findings=existing))

    assert update["search_count"] == 1
    assert [f["url"] for f in update["research_findings"]] == ["https://acme.example", "https://news.example/acme"]
    assert fake.queries == ['"Acme Widgets Ltd" official website UK company']


@pytest.mark.anyio
async def test_researcher_advances_on_failure(monkeypatch):
    monkeypatch.setattr(researcher, "get_tavily_client", lambda: FakeTavily(error=RuntimeError("rate limited")))

    update = await researcher_node(base_state(search_count=2))

    assert update["search_count"] == 3
    assert "research_findings" not in update


@pytest.mark.anyio
async def test_graph_runs_each_planned_search_then_writes(monkeypatch):
    searches = []

    async def fake_researcher(state):
        searches.append(state["search_queries"][state["search_count"]])
        finding = {"title": f"Result {state['search_count']}", "url": f"https://example.com/{state['search_count']}",
                   "content": "", "score": 1.0, "raw_content": None}
        return {
            "search_count": state["search_count"] + 1,
            "research_findings": state["research_findings"] + [finding],
        }

    async def fake_writer(state):
        return {"web_research": f"WEBSITE\n{len(state['research_findings'])} sources"}

    monkeypatch.setattr(supervisor, "researcher_node", fake_researcher)
    monkeypatch.setattr(supervisor, "writer_node", fake_writer)

    web_research, findings = await run_company_research(
        company_name="Acme Widgets Ltd",
        notice_type="Administration",
        notice_date="1 May 2024",
        max_searches=3,
    )

    assert len(searches) == 3
    assert len(findings) == 3
    assert web_research == "WEBSITE\n3 sources"


@pytest.mark.anyio
async def test_researcher_searches_off_the_event_loop(monkeypatch):
    fake = FakeTavily(results=[{"title": "Acme", "url": "https://acme.example", "content": "Home"}])
    monkeypatch.setattr(researcher, "get_tavily_client", lambda: fake)

    await researcher_node(base_state())

    assert fake.threads and fake.threads[0] != threading.get_ident()
