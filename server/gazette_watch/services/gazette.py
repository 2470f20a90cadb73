"""The Gazette insolvency notice feed."""

import asyncio
import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import httpx

from ..exceptions import GazetteError

logger = logging.getLogger(__name__)

# Notice code prefixes shown on the dashboard:
# 241x administration, 243x winding-up resolutions and liquidator
# appointments, 244x CVL meetings, 245x winding up petitions
ALLOWED_PREFIXES = ("241", "243", "244", "245")

NOTICE_TYPES = [
    ("245", "Winding Up Petition"),
    ("244", "Liquidation (CVL)"),
    ("243", "Winding Up / Liquidation"),
    ("241", "Administration"),
]

NOTICE_PAGE_URL = "https://www.thegazette.co.uk/notice"


def is_allowed_notice(notice_code) -> bool:
    if not notice_code:
        return False
    return str(notice_code).startswith(ALLOWED_PREFIXES)


def get_notice_type(notice_code) -> str:
    """Human-readable insolvency type for a Gazette notice code."""
    if not notice_code:
        return "Notice"
    code = str(notice_code)
    for prefix, label in NOTICE_TYPES:
        if code.startswith(prefix):
            return label
    return "Insolvency"


def _as_list(value) -> list:
    """The feed collapses single-item arrays into a bare object."""
    if not value:
        return []
    if isinstance(value, dict):
        return [value]
    return list(value)


def _page_link(entry: dict) -> str:
    # The human-readable page link is the one without @rel or @type
    links = _as_list(entry.get("link"))
    for link in links:
        if not link.get("@rel") and not link.get("@type") and link.get("@href"):
            return link["@href"]
    notice_id = str(entry.get("id") or "").rstrip("/").split("/")[-1]
    return f"{NOTICE_PAGE_URL}/{notice_id}"


def transform_entry(entry: dict) -> dict:
    """Convert a raw feed entry into the notice shape the dashboard uses."""
    notice_code = entry.get("f:notice-code")
    category = entry.get("category")
    if isinstance(category, dict):
        category = category.get("@term")

    return {
        "id": entry.get("id"),
        "title": entry.get("title"),
        "published": entry.get("published"),
        "updated": entry.get("updated"),
        "noticeCode": notice_code,
        "noticeType": get_notice_type(notice_code),
        "category": category,
        "link": _page_link(entry),
    }


class GazetteClient:
    """Fetches recent insolvency notices from The Gazette JSON feed."""

    def __init__(
        self,
        base_url: str = "https://www.thegazette.co.uk/insolvency/notice/data.json",
        page_size: int = 100,
        max_pages: int = 10,
        lookback_days: int = 7,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.page_size = page_size
        self.max_pages = max_pages
        self.lookback_days = lookback_days
        self.timeout = timeout
        self._transport = transport

    async def fetch_page(self, client: httpx.AsyncClient, start: str, end: str, page: int = 1) -> dict:
        response = await client.get(
            self.base_url,
            params={
                "results-page-size": self.page_size,
                "results-page": page,
                "start-publish-date": start,
                "end-publish-date": end,
            },
        )
        if response.status_code != 200:
            raise GazetteError(f"Gazette API error: {response.status_code}", status_code=response.status_code)
        return response.json()

    async def fetch_notices(self, today: Optional[date] = None) -> dict:
        """Fetch notices published over the lookback window, newest first."""
        end_date = today or datetime.now(timezone.utc).date()
        start_date = end_date - timedelta(days=self.lookback_days)
        start, end = start_date.isoformat(), end_date.isoformat()

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            first_page = await self.fetch_page(client, start, end, 1)
            total = int(first_page.get("f:total") or 0)
            total_pages = min(math.ceil(total / self.page_size), self.max_pages)

            entries = _as_list(first_page.get("entry"))
            if total_pages > 1:
                pages = await asyncio.gather(*[
                    self.fetch_page(client, start, end, page)
                    for page in range(2, total_pages + 1)
                ])
                for page_data in pages:
                    entries.extend(_as_list(page_data.get("entry")))

        notices = [transform_entry(entry) for entry in entries]
        notices = [notice for notice in notices if is_allowed_notice(notice["noticeCode"])]
        notices.sort(key=lambda notice: notice.get("published") or "", reverse=True)

        logger.info("Fetched %d insolvency notices (%d in Gazette)", len(notices), total)
        return {
            "notices": notices,
            "fetched": datetime.now(timezone.utc).isoformat(),
            "total": len(notices),
            "dateRange": {"start": start, "end": end},
            "totalInGazette": total,
        }
