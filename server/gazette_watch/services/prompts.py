"""Prompt builders and draft validation for generated content."""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from .companies_house import (
    CompanyBundle,
    Financials,
    format_address,
    format_date,
    sic_description,
)

# Short industry labels used in prompt context
SIC_LABELS = {
    "62011": "Computer programming",
    "62012": "Software development",
    "62020": "IT consultancy",
    "62090": "IT services",
    "70229": "Management consultancy",
    "82990": "Business support services",
    "47910": "Online retail",
    "56101": "Restaurants and cafes",
    "56210": "Event catering",
    "56302": "Pubs and bars",
    "41100": "Property development",
    "68100": "Real estate sales",
    "68209": "Property letting",
    "86900": "Healthcare",
    "96020": "Hairdressing and beauty",
    "47110": "Retail (food)",
    "47190": "Retail (general)",
    "47710": "Retail (clothing)",
    "47890": "Retail (other)",
    "55100": "Hotels",
    "55201": "Holiday accommodation",
    "49410": "Road freight",
    "81210": "Cleaning services",
    "85590": "Education services",
    "93110": "Fitness facilities",
    "93190": "Sports activities",
}

REQUIRED_SECTIONS = [
    "Key Takeaways",
    "Business Overview and Financials",
    "Insolvency Overview",
    "Reasons for Financial Distress",
    "Learning Points for Distressed Business Buyers",
    "FAQ for Strategic Buyers",
]

AI_PHRASES = [
    "it's worth noting",
    "dive deeper",
    "delve into",
    "leverage",
    "unlock",
    "holistic",
    "synergy",
    "robust",
    "seamless",
]

TITLE_RANGE = (50, 70)
META_RANGE = (140, 160)
WORD_RANGE = (550, 750)


@dataclass
class BlogValidation:
    valid: bool
    word_count: int
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    title: Optional[str] = None
    meta_description: Optional[str] = None


def _psc_name(psc: dict) -> str:
    if psc.get("name"):
        return psc["name"]
    elements = psc.get("name_elements") or {}
    name = f"{elements.get('forename', '')} {elements.get('surname', '')}".strip()
    return name or "Unknown"


def format_companies_house_context(
    profile: Optional[dict],
    officers: Optional[list[dict]] = None,
    pscs: Optional[list[dict]] = None,
) -> str:
    """Summarise Companies House data for prompt context."""
    if not profile:
        return "Company data not available from Companies House."

    sections = [
        f"Company Name: {profile.get('company_name')}",
        f"Company Number: {profile.get('company_number')}",
        f"Status: {(profile.get('company_status') or 'Unknown').upper()}",
    ]

    if profile.get("type"):
        sections.append(f"Type: {profile['type']}")

    if profile.get("date_of_creation"):
        sections.append(f"Incorporated: {format_date(profile['date_of_creation'])}")

    address = profile.get("registered_office_address")
    if address:
        formatted = format_address(address, include_country=False)
        if formatted:
            sections.append(f"Registered Address: {formatted}")

    if profile.get("sic_codes"):
        labels = [SIC_LABELS.get(code, f"SIC {code}") for code in profile["sic_codes"]]
        sections.append(f"Industry: {', '.join(labels)}")

    if officers:
        sections.append("\nOfficers:")
        for officer in officers[:5]:
            role = (officer.get("officer_role") or "Officer").replace("_", " ")
            status = "(Resigned)" if officer.get("resigned_on") else "(Current)"
            sections.append(f"- {officer.get('name')} ({role}) {status}")

    if pscs:
        sections.append("\nPersons with Significant Control:")
        for psc in pscs[:3]:
            natures = psc.get("natures_of_control") or []
            control = natures[0].replace("-", " ") if natures else "Significant control"
            sections.append(f"- {_psc_name(psc)} ({control})")

    return "\n".join(sections)


def format_financials_context(financials: Optional[Financials], accounts_date: Optional[str] = None) -> str:
    """Summarise the latest accounts for prompt context."""
    if not financials:
        return "Financial data not available"

    values = financials.to_dict()
    sections = []
    if accounts_date:
        sections.append(f"Latest Accounts ({format_date(accounts_date, 'short')})")

    for label, key in [
        ("Net Assets", "netAssetsFormatted"),
        ("Total Assets", "totalAssetsFormatted"),
        ("Current Assets", "currentAssetsFormatted"),
        ("Liabilities", "liabilitiesFormatted"),
    ]:
        if values[key]:
            sections.append(f"- {label}: {values[key]}")

    return "\n".join(sections)


def _financial_table(financials: Optional[Financials]) -> str:
    if not financials or not financials.has_data():
        return ""

    values = financials.to_dict()
    rows = [
        f"<tr><td>{label}</td><td>{values[key]}</td></tr>"
        for label, key in [
            ("Total Assets", "totalAssetsFormatted"),
            ("Net Assets", "netAssetsFormatted"),
            ("Current Assets", "currentAssetsFormatted"),
            ("Liabilities", "liabilitiesFormatted"),
        ]
        if values[key]
    ]
    return (
        '<table class="financial-data">\n'
        "<thead>\n<tr>\n<th>Metric</th>\n<th>Value</th>\n</tr>\n</thead>\n"
        "<tbody>\n" + "\n".join(rows) + "\n</tbody>\n</table>\n"
    )


def generate_blog_prompt(
    company_name: str,
    company_number: Optional[str],
    notice_type: str,
    notice_date: str,
    notice_link: str,
    bundle: Optional[CompanyBundle],
    primary_keyword: str,
    secondary_keywords: list[str],
    related_terms: list[str],
    search_volume: Optional[int] = None,
    word_count: int = 650,
    today: Optional[date] = None,
) -> str:
    """Build the prompt for an SEO blog post about a company's insolvency."""
    ch_context = format_companies_house_context(
        bundle.profile if bundle else None,
        bundle.officers if bundle else None,
        bundle.pscs if bundle else None,
    )
    financials = bundle.financials.financials if bundle else None
    accounts_date = bundle.financials.accounts_date if bundle else None
    fin_context = format_financials_context(financials, accounts_date)
    volume = f" ({search_volume}/month)" if search_volume else ""
    updated = format_date((today or date.today()).isoformat())
    footer_number = f" | Company number: {company_number}" if company_number else ""

    return f"""You are a business intelligence writer for Administration List, a platform for distressed acquisitions and insolvency news.

TASK: Write a {word_count}-word SEO-optimized blog post about {company_name} entering {notice_type}.

AUDIENCE: Senior decision makers, business buyers, UK entrepreneurs looking for distressed business opportunities.

TONE: Straightforward, compelling, no fuss. Write with authority but avoid jargon. Use short sentences and clear language.

--- COMPANY DATA ---
{ch_context}

--- FINANCIAL DATA ---
{fin_context}

--- INSOLVENCY NOTICE ---
Notice Type: {notice_type}
Published: {notice_date}
Gazette Link: {notice_link}

--- KEYWORD DATA ---
Primary Keyword: "{primary_keyword}"{volume}
Secondary Keywords: {', '.join(secondary_keywords)}
Related Terms: {', '.join(related_terms[:8])}

--- BLOG STRUCTURE (MANDATORY) ---

## Key Takeaways
- 3-5 bullet points summarizing the key facts, with specific numbers and dates

## Business Overview and Financials
- What the company does, industry context, key financial metrics (120-150 words)

## Insolvency Overview
- Type of insolvency process, timeline, impact on creditors (100-120 words)

## Reasons for Financial Distress
- Likely causes from the available data, industry conditions (150-180 words)

## Learning Points for Distressed Business Buyers
- Opportunity assessment, due diligence areas, strategic fit (100-120 words)

## FAQ for Strategic Buyers
3-4 conversational questions, e.g. "What assets does {company_name} have?", each answered in 40-60 words

--- WRITING GUIDELINES ---

DO:
- Use short sentences (15-20 words average) and active voice
- Include company number ({company_number or 'if available'}) in the first 2 paragraphs
- Naturally incorporate "{primary_keyword}" 3-5 times throughout
- Include phrases: "insolvency practitioner", "distressed acquisition", "administration process"
- Use UK English spelling

DON'T:
- Speculate without evidence or include opinions
- Use hedging words (might, could, perhaps, possibly)
- Use AI phrases ("it's worth noting", "dive deeper", "leverage", "unlock", "delve into")
- Write "not available" or "information not found"

--- OUTPUT FORMAT ---

Return ONLY the blog content as production-ready HTML in this exact format:

<h1>[Title: 55-60 characters, include company name and insolvency type]</h1>

<p class="meta-description">[150-155 characters summarizing the blog]</p>

<h2>Key Takeaways</h2>
<ul>
<li>[Bullet]</li>
</ul>

<h2>Business Overview and Financials</h2>
<p>[Paragraph]</p>

{_financial_table(financials)}
<h2>Insolvency Overview</h2>
<p>[Paragraph]</p>

<h2>Reasons for Financial Distress</h2>
<p>[Paragraph]</p>

<h2>Learning Points for Distressed Business Buyers</h2>
<p>[Paragraph]</p>

<h2>FAQ for Strategic Buyers</h2>

<h3>Q: [Question]</h3>
<p>[Answer - 40-60 words]</p>

<hr>
<p class="footer-meta">Last updated: {updated}{footer_number}</p>"""


def generate_linkedin_prompt(
    company_name: str,
    company_number: Optional[str],
    notice_type: str,
    notice_date: str,
    notice_link: str,
    bundle: Optional[CompanyBundle],
) -> str:
    """Build the prompt for a plain-text LinkedIn post."""
    ch_context = format_companies_house_context(
        bundle.profile if bundle else None,
        bundle.officers if bundle else None,
        bundle.pscs if bundle else None,
    )
    fin_context = format_financials_context(
        bundle.financials.financials if bundle else None,
        bundle.financials.accounts_date if bundle else None,
    )

    return f"""You are a LinkedIn content writer for Administration List, a UK platform for distressed business acquisitions and insolvency intelligence.

TASK: Write a LinkedIn post about {company_name} entering {notice_type}.

AUDIENCE: UK business owners, investors, entrepreneurs, and professionals interested in distressed assets, company failures, and turnaround opportunities.

--- COMPANY DATA ---
{ch_context}

--- FINANCIAL DATA ---
{fin_context}

--- INSOLVENCY NOTICE ---
Notice Type: {notice_type}
Published: {notice_date}
Gazette Link: {notice_link}

--- LINKEDIN POST STRUCTURE (MANDATORY) ---

HOOK (lines 1-2, before the "See more" fold): lead with a number, a stark fact or a sharp observation. Max 200 characters. Do NOT start with the company name.

THE STORY (3-5 short paragraphs): the real financial data, what the company did, what went wrong, grounded in the data. One idea per paragraph.

THE INSIGHT (1-2 paragraphs): what this means for business owners, buyers or the wider UK economy.

SIGN-OFF (1 sentence): punchy, forward-looking, or a question that invites a reply.

CALL TO ACTION (2 lines):
We track every UK insolvency on Administration List.
Full details at administrationlist.co.uk

--- WRITING RULES ---

DO: lead with specific numbers, keep sentences under 15 words, leave a blank line between paragraphs, use UK English, include company number {company_number or 'if known'} naturally, keep the post under 1,300 characters.

DON'T: start with the company name, use em dashes, bullet points, hashtags, HTML tags, corporate language or AI filler phrases, or speculate without data.

OUTPUT: Return ONLY the LinkedIn post as plain text, ready to paste into LinkedIn."""


def build_analysis_header(
    company_name: str,
    bundle: Optional[CompanyBundle],
    error: Optional[str] = None,
    configured: bool = True,
) -> str:
    """Plain-text Companies House section of a company analysis."""
    if bundle and bundle.profile:
        profile = bundle.profile
        lines = [
            "COMPANIES HOUSE VERIFIED DATA",
            "",
            "COMPANY DETAILS",
            f"Company Name: {profile.get('company_name')}",
            f"Company Number: {profile.get('company_number')}",
            f"Status: {(profile.get('company_status') or 'Unknown').upper()}",
            f"Type: {profile.get('type') or 'Unknown'}",
            f"Incorporated: {format_date(profile.get('date_of_creation'))}",
        ]
        if profile.get("date_of_cessation"):
            lines.append(f"Dissolved: {format_date(profile['date_of_cessation'])}")

        lines += ["", "REGISTERED ADDRESS", format_address(profile.get("registered_office_address"))]

        if profile.get("sic_codes"):
            lines += ["", "INDUSTRY CODES"]
            lines += [f"{code}: {sic_description(code)}" for code in profile["sic_codes"]]

        lines += ["", "OFFICERS (DIRECTORS & SECRETARIES)"]
        if bundle.officers:
            for officer in bundle.officers:
                role = (officer.get("officer_role") or "officer").replace("_", " ").upper()
                appointed = f"Appointed: {format_date(officer['appointed_on'])}" if officer.get("appointed_on") else ""
                resigned = f"Resigned: {format_date(officer['resigned_on'])}" if officer.get("resigned_on") else "Current"
                lines.append(f"{officer.get('name')}\n  Role: {role}\n  {appointed} | {resigned}")
                if officer.get("occupation"):
                    lines.append(f"  Occupation: {officer['occupation']}")
                lines.append("")
        else:
            lines.append("No officers found")

        lines += ["", "PERSONS WITH SIGNIFICANT CONTROL (SHAREHOLDERS/CONTROLLERS)"]
        if bundle.pscs:
            for psc in bundle.pscs:
                nature = ", ".join(psc.get("natures_of_control") or []) or "Control details not specified"
                notified = f"Notified: {format_date(psc['notified_on'])}" if psc.get("notified_on") else ""
                lines.append(f"{_psc_name(psc)}\n  {nature}\n  {notified}\n")
        else:
            lines.append("No PSCs found or company exempt")

        return "\n".join(lines)

    if error:
        return f"COMPANIES HOUSE: Unable to fetch data - {error}"
    if not configured:
        return "COMPANIES HOUSE: API key not configured"
    return f'COMPANIES HOUSE: No matching company found for "{company_name}"'


_TITLE = re.compile(r"<h1[^>]*>(.+?)</h1>", re.IGNORECASE)
_META = re.compile(r'<p class="meta-description">(.+?)</p>', re.IGNORECASE)


def count_content_words(blog: str) -> int:
    """Count body words, ignoring headings, meta description and footer."""
    text = re.sub(r"<h[1-6][^>]*>.*?</h[1-6]>", "", blog, flags=re.IGNORECASE)
    text = re.sub(r'<p class="meta-description">.*?</p>', "", text, count=1, flags=re.IGNORECASE)
    text = re.sub(r'<p class="footer-meta">.*?</p>', "", text, count=1, flags=re.IGNORECASE)
    text = re.sub(r"<hr\s*/?>", "", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    return len(text.split())


def validate_blog(blog: str) -> BlogValidation:
    """Check a generated blog for structure, length and banned phrases."""
    warnings: list[str] = []
    errors: list[str] = []

    title_match = _TITLE.search(blog)
    title = title_match.group(1) if title_match else None
    if title is None:
        errors.append("Missing title (<h1> tag)")
    elif not TITLE_RANGE[0] <= len(title) <= TITLE_RANGE[1]:
        warnings.append(f"Title length {len(title)} chars (target: 55-60)")

    meta_match = _META.search(blog)
    meta = meta_match.group(1) if meta_match else None
    if meta is None:
        errors.append('Missing meta description (<p class="meta-description">)')
    elif not META_RANGE[0] <= len(meta) <= META_RANGE[1]:
        warnings.append(f"Meta description {len(meta)} chars (target: 150-155)")

    for section in REQUIRED_SECTIONS:
        if f"<h2>{section}</h2>" not in blog:
            errors.append(f"Missing required section: {section}")

    word_count = count_content_words(blog)
    if word_count < WORD_RANGE[0]:
        warnings.append(f"Word count {word_count} below minimum ({WORD_RANGE[0]})")
    elif word_count > WORD_RANGE[1]:
        warnings.append(f"Word count {word_count} above maximum ({WORD_RANGE[1]})")

    lower_blog = blog.lower()
    for phrase in AI_PHRASES:
        if phrase in lower_blog:
            warnings.append(f'Contains AI phrase: "{phrase}"')

    return BlogValidation(
        valid=not errors,
        word_count=word_count,
        warnings=warnings,
        errors=errors,
        title=title,
        meta_description=meta,
    )
