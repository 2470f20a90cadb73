"""
Tests for GA4 reporting and the analytics endpoint.
"""

from __future__ import annotations

import threading
from types import SimpleNamespace

import pytest
from google.api_core.exceptions import PermissionDenied

from gazette_watch.dependencies import get_analytics
from gazette_watch.exceptions import AnalyticsError
from gazette_watch.main import app
from gazette_watch.services.analytics import (
    AnalyticsClient,
    build_requests,
    format_year_month,
    process_channels,
    process_conversions,
    process_sources,
    process_traffic,
)


def row(dims, metrics):
    return SimpleNamespace(
        dimension_values=[SimpleNamespace(value=value) for value in dims],
        metric_values=[SimpleNamespace(value=str(value)) for value in metrics],
    )


def report(*rows):
    return SimpleNamespace(rows=list(rows))


CONVERSIONS = report(
    row(["202402", "Monthly subscription"], [3, 30.0]),
    row(["202401", "Annual subscription"], [1, 99.5]),
    row(["202401", "purchase"], [2, 20.0]),
    row(["202401", "Purchase"], [1, 10.0]),
)
SOURCES = report(
    row(["Organic Search", "Monthly subscription"], [1, 10.0]),
    row(["Direct", "Monthly subscription"], [2, 20.0]),
    row(["Direct", "Purchase"], [1, 5.0]),
)
TRAFFIC = report(row(["202401"], [120]), row(["202402"], [80]))
CHANNELS = report(
    row(["Organic Search"], [150, 100, 60]),
    row(["Direct"], [50, 40, 10]),
)


class FakeGA4:
    """Answers run_report by matching on the requested dimensions."""

    def __init__(self, error=None):
        self.error = error
        self.requests = []
        self.threads = []

    def run_report(self, request):
        self.requests.append(request)
        self.threads.append(threading.get_ident())
        if self.error:
            raise self.error
        dims = [d["name"] for d in request["dimensions"]]
        if dims == ["yearMonth", "eventName"]:
            return CONVERSIONS
        if dims == ["sessionDefaultChannelGroup", "eventName"]:
            return SOURCES
        if dims == ["yearMonth"]:
            return TRAFFIC
        return CHANNELS


class FakeAnalytics:
    def __init__(self, configured=True, error=None):
        self.configured = configured
        self.error = error
        self.calls = []

    async def fetch_report(self, start_date="2020-01-01", end_date="today"):
        self.calls.append((start_date, end_date))
        if self.error:
            raise self.error
        return {"kpis": {"monthly": 1}, "date_range": {"start": start_date, "end": end_date}}


class TestProcessing:
    def test_format_year_month(self):
        assert format_year_month("202401") == "Jan 24"
        assert format_year_month("202512") == "Dec 25"
        assert format_year_month("bad") == "bad"

    def test_build_requests_filters_conversion_events(self):
        requests = build_requests("123", "2024-01-01", "today")

        assert list(requests) == ["conversions", "sources", "traffic", "channels"]
        conversions = requests["conversions"]
        assert conversions["property"] == "properties/123"
        assert conversions["date_ranges"] == [{"start_date": "2024-01-01", "end_date": "today"}]
        assert conversions["dimension_filter"]["filter"]["in_list_filter"]["values"] == [
            "Monthly subscription", "Annual subscription", "Purchase", "purchase",
        ]
        assert "dimension_filter" not in requests["traffic"]
        assert requests["channels"]["order_bys"] == [{"metric": {"metric_name": "sessions"}, "desc": True}]
        assert requests["channels"]["limit"] == 50

    def test_conversions(self):
        kpis, trend = process_conversions(CONVERSIONS)

        assert kpis == {"monthly": 3, "annual": 1, "purchases": 3, "revenue": 159.5}
        assert [month["yearMonth"] for month in trend] == ["202401", "202402"]
        assert trend[0] == {"yearMonth": "202401", "label": "Jan 24", "monthly": 0, "annual": 1, "purchase": 3}

    def test_empty_report(self):
        kpis, trend = process_conversions(SimpleNamespace(rows=[]))

        assert kpis == {"monthly": 0, "annual": 0, "purchases": 0, "revenue": 0.0}
        assert trend == []
        assert process_channels(report()) == []

    def test_sources_sorted_by_total(self):
        sources = process_sources(SOURCES)

        assert [s["channel"] for s in sources] == ["Direct", "Organic Search"]
        assert sources[0] == {"channel": "Direct", "total": 3, "monthly": 2, "annual": 0,
                              "purchases": 1, "revenue": 25.0}

    def test_traffic(self):
        assert process_traffic(TRAFFIC) == [
            {"yearMonth": "202401", "label": "Jan 24", "sessions": 120},
            {"yearMonth": "202402", "label": "Feb 24", "sessions": 80},
        ]

    def test_channel_share(self):
        channels = process_channels(CHANNELS)

        assert channels[0] == {"channel": "Organic Search", "sessions": 150, "users": 100,
                               "newUsers": 60, "pct": 75.0}
        assert channels[1]["pct"] == 25.0


class TestClient:
    def test_configured(self):
        assert AnalyticsClient("", "{}").configured is False
        assert AnalyticsClient("123", "").configured is False
        assert AnalyticsClient("123", "{}").configured is True

    @pytest.mark.anyio
    async def test_bad_credentials_json(self):
        with pytest.raises(AnalyticsError):
            await AnalyticsClient("123", "not json").fetch_report()

    @pytest.mark.anyio
    async def test_fetch_report(self):
        ga4 = FakeGA4()
        client = AnalyticsClient("123", "", show_revenue=True, client=ga4)

        result = await client.fetch_report("2024-01-01", "2024-02-29")

        assert len(ga4.requests) == 4
        assert all(thread != threading.get_ident() for thread in ga4.threads)
        assert result["kpis"]["monthly"] == 3
        assert result["sources"][0]["channel"] == "Direct"
        assert result["traffic"][1]["sessions"] == 80
        assert result["channels"][0]["pct"] == 75.0
        assert result["show_revenue"] is True
        assert result["date_range"] == {"start": "2024-01-01", "end": "2024-02-29"}


class TestEndpoint:
    def test_not_configured(self, client):
        app.dependency_overrides[get_analytics] = lambda: FakeAnalytics(configured=False)

        response = client.get("/api/analytics")

        assert response.status_code == 500
        assert response.json()["detail"] == "Google Analytics not configured"

    def test_report_is_cached_per_date_range(self, client):
        analytics = FakeAnalytics()
        app.dependency_overrides[get_analytics] = lambda: analytics

        first = client.get("/api/analytics").json()
        second = client.get("/api/analytics").json()
        other = client.get("/api/analytics", params={"start_date": "2024-01-01"}).json()

        assert first["cached"] is False
        assert first["date_range"] == {"start": "2020-01-01", "end": "today"}
        assert second["cached"] is True
        assert other["cached"] is False
        assert analytics.calls == [("2020-01-01", "today"), ("2024-01-01", "today")]

    def test_google_error(self, client):
        app.dependency_overrides[get_analytics] = lambda: FakeAnalytics(error=PermissionDenied("no access"))

        response = client.get("/api/analytics")

        assert response.status_code == 500
        assert "no access" in response.json()["detail"]

    def test_failure_is_not_cached(self, client):
        failing = FakeAnalytics(error=AnalyticsError("boom"))
        app.dependency_overrides[get_analytics] = lambda: failing
        client.get("/api/analytics")

        working = FakeAnalytics()
        app.dependency_overrides[get_analytics] = lambda: working

        assert client.get("/api/analytics").json()["cached"] is False
