"""
Shared fixtures for Gazette Watch tests.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from gazette_watch.config import Settings, get_settings
from gazette_watch.dependencies import get_companies_house
from gazette_watch.main import app
from gazette_watch.services.companies_house import CompaniesHouseClient


class FakeClock:
    """Manually advanced clock for cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client():
    """Test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with an Anthropic key and no Companies House key."""
    test_settings = Settings(
        anthropic_api_key="test-anthropic-key",
        tavily_api_key="test-tavily-key",
        companies_house_api_key="",
    )
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_companies_house] = lambda: CompaniesHouseClient(api_key="")
    return test_settings
