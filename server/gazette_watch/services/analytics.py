"""Google Analytics 4 reporting for the subscription dashboard."""

import asyncio
import json
import logging
from typing import Any, Optional

from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.oauth2 import service_account

from ..exceptions import AnalyticsError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/analytics.readonly"]

MONTHLY = "Monthly subscription"
ANNUAL = "Annual subscription"
PURCHASE_EVENTS = ("Purchase", "purchase")
CONVERSION_EVENTS = [MONTHLY, ANNUAL, *PURCHASE_EVENTS]

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_year_month(ym: str) -> str:
    """``202401`` -> ``Jan 24``; anything unparseable is returned as is."""
    try:
        return f"{MONTHS[int(ym[4:6]) - 1]} {ym[2:4]}"
    except (ValueError, IndexError):
        return ym


def _conversion_filter() -> dict:
    return {"filter": {"field_name": "eventName", "in_list_filter": {"values": CONVERSION_EVENTS}}}


def build_requests(property_id: str, start_date: str, end_date: str) -> dict[str, dict]:
    """The four report requests behind the dashboard, keyed by purpose."""
    base = {
        "property": f"properties/{property_id}",
        "date_ranges": [{"start_date": start_date, "end_date": end_date}],
    }
    by_month = [{"dimension": {"dimension_name": "yearMonth"}}]

    return {
        "conversions": {
            **base,
            "dimensions": [{"name": "yearMonth"}, {"name": "eventName"}],
            "metrics": [{"name": "eventCount"}, {"name": "eventValue"}],
            "dimension_filter": _conversion_filter(),
            "order_bys": by_month,
            "limit": 1000,
        },
        "sources": {
            **base,
            "dimensions": [{"name": "sessionDefaultChannelGroup"}, {"name": "eventName"}],
            "metrics": [{"name": "eventCount"}, {"name": "eventValue"}],
            "dimension_filter": _conversion_filter(),
            "limit": 1000,
        },
        "traffic": {
            **base,
            "dimensions": [{"name": "yearMonth"}],
            "metrics": [{"name": "sessions"}],
            "order_bys": by_month,
            "limit": 1000,
        },
        "channels": {
            **base,
            "dimensions": [{"name": "sessionDefaultChannelGroup"}],
            "metrics": [{"name": "sessions"}, {"name": "totalUsers"}, {"name": "newUsers"}],
            "order_bys": [{"metric": {"metric_name": "sessions"}, "desc": True}],
            "limit": 50,
        },
    }


def _rows(response) -> list:
    return list(getattr(response, "rows", None) or [])


def _dims(row) -> list[str]:
    return [value.value for value in row.dimension_values]


def _metrics(row) -> list[str]:
    return [value.value for value in row.metric_values]


def _event_bucket(event: str) -> Optional[str]:
    if event == MONTHLY:
        return "monthly"
    if event == ANNUAL:
        return "annual"
    if event in PURCHASE_EVENTS:
        return "purchases"
    return None


def process_conversions(response) -> tuple[dict, list[dict]]:
    """Totals per subscription type plus a month-by-month trend."""
    kpis = {"monthly": 0, "annual": 0, "purchases": 0, "revenue": 0.0}
    trend: dict[str, dict] = {}

    for row in _rows(response):
        ym, event = _dims(row)
        count, value = _metrics(row)
        month = trend.setdefault(ym, {"monthly": 0, "annual": 0, "purchase": 0})

        bucket = _event_bucket(event)
        if bucket:
            kpis[bucket] += int(count)
            # The trend keeps the singular key for purchases
            month["purchase" if bucket == "purchases" else bucket] += int(count)
        kpis["revenue"] += float(value)

    trend_list = [
        {"yearMonth": ym, "label": format_year_month(ym), **values}
        for ym, values in sorted(trend.items())
    ]
    return kpis, trend_list


def process_sources(response) -> list[dict]:
    """Conversions per acquisition channel, biggest total first."""
    sources: dict[str, dict] = {}

    for row in _rows(response):
        channel, event = _dims(row)
        count, value = _metrics(row)
        source = sources.setdefault(channel, {"monthly": 0, "annual": 0, "purchases": 0, "revenue": 0.0})

        bucket = _event_bucket(event)
        if bucket:
            source[bucket] += int(count)
        source["revenue"] += float(value)

    result = [
        {"channel": channel, "total": data["monthly"] + data["annual"] + data["purchases"], **data}
        for channel, data in sources.items()
    ]
    result.sort(key=lambda item: item["total"], reverse=True)
    return result


def process_traffic(response) -> list[dict]:
    traffic = []
    for row in _rows(response):
        (ym,) = _dims(row)
        traffic.append({"yearMonth": ym, "label": format_year_month(ym), "sessions": int(_metrics(row)[0])})
    return traffic


def process_channels(response) -> list[dict]:
    """Sessions and users per channel with each channel's share of sessions."""
    rows = _rows(response)
    total_sessions = sum(int(_metrics(row)[0]) for row in rows)

    channels = []
    for row in rows:
        sessions, users, new_users = (int(value) for value in _metrics(row))
        channels.append({
            "channel": _dims(row)[0],
            "sessions": sessions,
            "users": users,
            "newUsers": new_users,
            "pct": round(sessions / total_sessions * 100, 1) if total_sessions else 0,
        })
    return channels


class AnalyticsClient:
    """Runs the dashboard reports against a GA4 property."""

    def __init__(
        self,
        property_id: str,
        credentials_json: str,
        show_revenue: bool = False,
        client: Optional[Any] = None,
    ):
        self.property_id = property_id
        self.credentials_json = credentials_json
        self.show_revenue = show_revenue
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.property_id and (self.credentials_json or self._client is not None))

    def _get_client(self):
        if self._client is None:
            try:
                info = json.loads(self.credentials_json)
            except json.JSONDecodeError as e:
                raise AnalyticsError(f"Invalid service account JSON: {e}") from e
            credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            self._client = BetaAnalyticsDataClient(credentials=credentials)
        return self._client

    async def fetch_report(self, start_date: str = "2020-01-01", end_date: str = "today") -> dict:
        """Fetch conversions, sources, traffic and channels for a date range."""
        client = self._get_client()
        requests = build_requests(self.property_id, start_date, end_date)

        # run_report is a blocking gRPC call
        conversions, sources, traffic, channels = await asyncio.gather(*(
            asyncio.to_thread(client.run_report, request=request)
            for request in requests.values()
        ))

        kpis, trend = process_conversions(conversions)
        logger.info("GA4 report %s..%s: %d trend months", start_date, end_date, len(trend))
        return {
            "kpis": kpis,
            "trend": trend,
            "sources": process_sources(sources),
            "traffic": process_traffic(traffic),
            "channels": process_channels(channels),
            "show_revenue": self.show_revenue,
            "date_range": {"start": start_date, "end": end_date},
        }
