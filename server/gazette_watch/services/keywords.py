"""Keyword targets and keyword density for blog drafts."""

import re
from dataclasses import asdict, dataclass, field
from typing import Optional

DENSITY_TARGET = (0.5, 2.0)

RELATED_TERMS = [
    "administration process UK",
    "insolvency practitioners",
    "company rescue",
    "distressed M&A",
    "business insolvency",
    "creditors voluntary liquidation",
    "pre-pack administration",
    "asset acquisition",
    "distressed business buyers",
    "insolvency notice UK",
]

_INDUSTRY_NOISE = re.compile(r"activities?|services?|support|other", re.IGNORECASE)


@dataclass
class PrimaryKeyword:
    keyword: str
    volume: Optional[int] = None
    competition: Optional[float] = None
    source: str = "fallback"


@dataclass
class KeywordData:
    primary: PrimaryKeyword
    secondary: list[str]
    related: list[str]
    industry: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class KeywordDensity:
    count: int
    density: float
    within_target: bool
    target_range: tuple[float, float] = field(default=DENSITY_TARGET)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "density": f"{self.density:.2f}",
            "targetRange": list(self.target_range),
            "withinTarget": self.within_target,
        }


def parse_company_context(
    sic_codes: Optional[list[str]] = None,
    sic_descriptions: Optional[dict[str, str]] = None,
) -> str:
    """Pick a one-word industry term from the company's first SIC code."""
    industry = "business"
    if not sic_codes or not sic_descriptions:
        return industry

    description = sic_descriptions.get(sic_codes[0])
    if not description:
        return industry

    terms = [t for t in _INDUSTRY_NOISE.sub("", description.lower()).split() if len(t) > 3]
    return terms[0] if terms else industry


def normalize_notice_type(notice_type: str) -> str:
    """Map a Gazette notice type onto the phrase people search for."""
    normalized = re.sub(r"winding.?up", "liquidation", notice_type.lower(), count=1)
    normalized = normalized.replace("petition", "", 1).strip()
    return normalized or "administration"


def generate_fallback_keywords(company_name: str, notice_type: str, industry: str) -> KeywordData:
    """Build keyword targets from the company name and notice type alone."""
    normalized_type = normalize_notice_type(notice_type)

    return KeywordData(
        primary=PrimaryKeyword(keyword=f"{company_name} {normalized_type}"),
        secondary=[
            f"{company_name} insolvency",
            f"{company_name} liquidation",
            f"{normalized_type} {industry} UK",
        ],
        related=list(RELATED_TERMS),
        industry=industry,
    )


def get_keyword_data(
    company_name: str,
    notice_type: str,
    sic_codes: Optional[list[str]] = None,
    sic_descriptions: Optional[dict[str, str]] = None,
) -> KeywordData:
    """Get keyword targets for a company blog post."""
    industry = parse_company_context(sic_codes, sic_descriptions)
    return generate_fallback_keywords(company_name, notice_type, industry)


def count_occurrences(text: str, keyword: str) -> int:
    """Count case-insensitive, non-overlapping occurrences of ``keyword``."""
    lower_text = text.lower()
    lower_keyword = keyword.lower()
    if not lower_keyword:
        return 0

    count = 0
    pos = lower_text.find(lower_keyword)
    while pos != -1:
        count += 1
        pos = lower_text.find(lower_keyword, pos + len(lower_keyword))
    return count


def calculate_keyword_density(text: str, keyword: str) -> KeywordDensity:
    """Calculate keyword density as a percentage of total words."""
    count = count_occurrences(text, keyword)
    words = len(re.split(r"\s+", text))
    density = count / words * 100 if words > 0 else 0.0

    low, high = DENSITY_TARGET
    return KeywordDensity(
        count=count,
        density=round(density, 2),
        within_target=low <= density <= high,
    )
