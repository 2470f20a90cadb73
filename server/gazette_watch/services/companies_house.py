"""Companies House API client and accounts parsing."""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..exceptions import CompaniesHouseError

logger = logging.getLogger(__name__)

# Descriptions for the SIC codes we see most often in insolvency notices
SIC_CODES = {
    "62011": "Computer programming activities",
    "62012": "Business and domestic software development",
    "62020": "Information technology consultancy activities",
    "62090": "Other information technology service activities",
    "70229": "Management consultancy activities",
    "82990": "Other business support service activities",
    "47910": "Retail sale via mail order or internet",
    "56101": "Restaurants and cafes",
    "41100": "Development of building projects",
    "68100": "Buying and selling of own real estate",
    "68209": "Other letting and operating of own or leased real estate",
}

_COMPANY_SUFFIX = re.compile(r"\s*(LIMITED|LTD|PLC|LLP)\.?\s*$", re.IGNORECASE)


def _ixbrl(tags: str) -> re.Pattern:
    return re.compile(rf'name="[^"]*(?:{tags})"[^>]*>([^<]+)<', re.IGNORECASE)


# Checked in order, the first pattern with a numeric match wins
IXBRL_PATTERNS = {
    "net_assets": [
        _ixbrl("NetAssetsLiabilities|TotalNetAssets|NetAssets"),
        _ixbrl("TotalAssetsLessCurrentLiabilities"),
    ],
    "total_assets": [_ixbrl("TotalAssets|FixedAssetsPlusCurrentAssets")],
    "current_assets": [_ixbrl("CurrentAssets|TotalCurrentAssets")],
    "fixed_assets": [_ixbrl("FixedAssets|TotalFixedAssets|TangibleFixedAssets")],
    "liabilities": [
        _ixbrl("CreditorsDueWithinOneYear|CurrentLiabilities"),
        _ixbrl("TotalCreditors|TotalLiabilities"),
    ],
}

_NET_ASSETS_TEXT = re.compile(
    r"(?:Net\s*assets|Total\s*assets\s*less\s*current\s*liabilities)[^£$\d]*[£$]?\s*([\d,]+)",
    re.IGNORECASE,
)


@dataclass
class Financials:
    net_assets: Optional[float] = None
    total_assets: Optional[float] = None
    current_assets: Optional[float] = None
    fixed_assets: Optional[float] = None
    liabilities: Optional[float] = None

    def has_data(self) -> bool:
        return any(value is not None for value in self._values().values())

    def _values(self) -> dict[str, Optional[float]]:
        return {
            "netAssets": self.net_assets,
            "totalAssets": self.total_assets,
            "currentAssets": self.current_assets,
            "fixedAssets": self.fixed_assets,
            "liabilities": self.liabilities,
        }

    def to_dict(self) -> dict:
        """Raw values plus display strings, e.g. ``netAssetsFormatted``."""
        result = {}
        for name, value in self._values().items():
            result[name] = value
            result[f"{name}Formatted"] = format_currency(value)
        return result


@dataclass
class FinancialsResult:
    financials: Optional[Financials] = None
    accounts_date: Optional[str] = None
    accounts_type: Optional[str] = None


@dataclass
class CompanyBundle:
    """Everything we know about one company from Companies House."""
    company_number: str
    profile: Optional[dict] = None
    officers: list[dict] = field(default_factory=list)
    pscs: list[dict] = field(default_factory=list)
    financials: FinancialsResult = field(default_factory=FinancialsResult)


def clean_search_term(company_name: str) -> str:
    """Strip a trailing LIMITED/LTD/PLC/LLP so the search is not too narrow."""
    return _COMPANY_SUFFIX.sub("", company_name).strip()


def pick_best_match(company_name: str, items: list[dict]) -> Optional[dict]:
    """Prefer an exact title match, then a company in liquidation or active."""
    if not items:
        return None

    wanted = company_name.lower()
    for item in items:
        if (item.get("title") or "").lower() == wanted:
            return item

    for item in items:
        if item.get("company_status") in ("liquidation", "active"):
            return item

    return items[0]


def _parse_number(raw: str) -> Optional[float]:
    try:
        return float(re.sub(r"[,\s]", "", raw))
    except ValueError:
        return None


def _extract_value(html: str, patterns: list[re.Pattern]) -> Optional[float]:
    for pattern in patterns:
        matches = pattern.findall(html)
        if matches:
            # The last tagged value is usually the current year
            value = _parse_number(matches[-1])
            if value is not None:
                return value
    return None


def parse_ixbrl_financials(html: str) -> Optional[Financials]:
    """Pull headline balance sheet figures out of an iXBRL accounts document."""
    financials = Financials(**{
        name: _extract_value(html, patterns) for name, patterns in IXBRL_PATTERNS.items()
    })

    if financials.net_assets is None and financials.total_assets is None:
        text_match = _NET_ASSETS_TEXT.search(html)
        if text_match:
            financials.net_assets = _parse_number(text_match.group(1))

    return financials if financials.has_data() else None


def format_currency(value: Optional[float]) -> Optional[str]:
    """Format a figure as ``£1.2m``, ``£45k`` or ``£900``."""
    if value is None:
        return None

    abs_value = abs(value)
    if abs_value >= 1_000_000:
        formatted = f"£{abs_value / 1_000_000:.1f}m"
    elif abs_value >= 1000:
        formatted = f"£{abs_value / 1000:.0f}k"
    else:
        formatted = f"£{abs_value:.0f}"

    return f"-{formatted}" if value < 0 else formatted


def format_address(address: Optional[dict], include_country: bool = True) -> str:
    """Format a registered office address onto one line."""
    if not address:
        return "Not available"
    keys = ["premises", "address_line_1", "address_line_2", "locality", "region", "postal_code"]
    if include_country:
        keys.append("country")
    return ", ".join(address[key] for key in keys if address.get(key))


def format_date(value: Optional[str], fmt: str = "long") -> str:
    """Format an ISO date as ``5 March 2024`` (long) or ``Mar 2024`` (short)."""
    if not value:
        return "Unknown"
    try:
        parsed = date.fromisoformat(value[:10])
    except ValueError:
        return value
    if fmt == "short":
        return parsed.strftime("%b %Y")
    return f"{parsed.day} {parsed.strftime('%B %Y')}"


def sic_description(code: str) -> str:
    return SIC_CODES.get(code, f"SIC {code}")


def _or_default(result, default, what: str, company_number: str):
    """Unwrap a gathered result, logging ordinary failures and using ``default``."""
    if not isinstance(result, BaseException):
        return result
    if not isinstance(result, Exception):
        raise result
    logger.warning("Could not fetch %s for %s: %s", what, company_number, result)
    return default


class CompaniesHouseClient:
    """Thin async client for the Companies House public data API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.company-information.service.gov.uk",
        document_url: str = "https://find-and-update.company-information.service.gov.uk",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.document_url = document_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport, **kwargs)

    async def _get(self, endpoint: str) -> Optional[Any]:
        """GET a JSON resource; ``None`` when Companies House answers 404."""
        async with self._client(auth=(self.api_key, "")) as client:
            response = await client.get(f"{self.base_url}{endpoint}")

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise CompaniesHouseError(
                f"Companies House API error: {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def search_company(self, company_name: str) -> Optional[dict]:
        """Search for a company by name and pick the most likely match."""
        term = quote(clean_search_term(company_name))
        data = await self._get(f"/search/companies?q={term}&items_per_page=5")
        return pick_best_match(company_name, (data or {}).get("items") or [])

    async def get_company_profile(self, company_number: str) -> Optional[dict]:
        return await self._get(f"/company/{company_number}")

    async def get_officers(self, company_number: str) -> list[dict]:
        data = await self._get(f"/company/{company_number}/officers?items_per_page=50")
        return (data or {}).get("items") or []

    async def get_pscs(self, company_number: str) -> list[dict]:
        data = await self._get(f"/company/{company_number}/persons-with-significant-control?items_per_page=50")
        return (data or {}).get("items") or []

    async def get_accounts_filings(self, company_number: str) -> list[dict]:
        data = await self._get(f"/company/{company_number}/filing-history?category=accounts&items_per_page=5")
        return (data or {}).get("items") or []

    async def fetch_accounts_document(self, company_number: str, transaction_id: str) -> Optional[str]:
        """Fetch the XHTML rendering of an accounts filing."""
        url = f"{self.document_url}/company/{company_number}/filing-history/{transaction_id}/document?format=xhtml"
        async with self._client(follow_redirects=True) as client:
            response = await client.get(
                url,
                headers={
                    "Accept": "application/xhtml+xml, text/html",
                    "User-Agent": "Mozilla/5.0 (compatible; GazetteFeed/1.0)",
                },
            )

        if response.status_code != 200:
            logger.warning("Document fetch failed for %s: %s", company_number, response.status_code)
            return None
        return response.text

    async def get_financials(self, company_number: str) -> FinancialsResult:
        """Parse figures from the latest filed accounts, if any."""
        try:
            filings = await self.get_accounts_filings(company_number)
            if not filings:
                return FinancialsResult()

            latest = filings[0]
            result = FinancialsResult(
                accounts_date=latest.get("date"),
                accounts_type=latest.get("description"),
            )

            html = await self.fetch_accounts_document(company_number, latest.get("transaction_id", ""))
            if html:
                result.financials = parse_ixbrl_financials(html)
            return result

        except (httpx.HTTPError, CompaniesHouseError) as e:
            logger.error("Error fetching financials for %s: %s", company_number, e)
            return FinancialsResult()

    async def get_company_bundle(self, company_name: str, with_financials: bool = True) -> Optional[CompanyBundle]:
        """Search for a company and fetch its profile, officers, PSCs and accounts."""
        match = await self.search_company(company_name)
        if not match or not match.get("company_number"):
            return None

        number = match["company_number"]
        calls = [
            self.get_company_profile(number),
            self.get_officers(number),
            self.get_pscs(number),
        ]
        if with_financials:
            calls.append(self.get_financials(number))

        # Let every call finish before deciding what a failure means
        profile, officers, pscs, *rest = await asyncio.gather(*calls, return_exceptions=True)
        if isinstance(profile, BaseException):
            raise profile

        bundle = CompanyBundle(
            company_number=number,
            profile=profile,
            officers=_or_default(officers, [], "officers", number),
            pscs=_or_default(pscs, [], "PSCs", number),
        )
        if rest:
            bundle.financials = _or_default(rest[0], FinancialsResult(), "financials", number)
        return bundle
