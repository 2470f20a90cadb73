"""Internal linking for generated blog drafts.

Links from the Administration List link database are scored by keyword
overlap with the draft, and the best ones are inserted at the first eligible
mention of their primary keyword.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from ..exceptions import InvalidInputError

logger = logging.getLogger(__name__)

STOPWORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
    "her", "was", "one", "our", "out", "day", "get", "has", "him", "his",
    "how", "man", "new", "now", "old", "see", "two", "way", "who", "boy",
    "did", "its", "let", "put", "say", "she", "too", "use", "will", "than",
    "this", "that", "with", "what", "when", "where", "which", "about", "would",
    "there", "their", "these", "those", "been", "have", "from", "they", "more",
})

DEFAULT_MAX_LINKS = 5
DIAGNOSTIC_LINKS = 10

_HEADER_MARKER = re.compile(r"#{1,6}\s")
_MARKDOWN_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_EMPHASIS = re.compile(r"[*_`]")
_TERM = re.compile(r"\b[a-z]{2,}\b", re.ASCII)


@dataclass(frozen=True)
class LinkRecord:
    """A target page and the phrases that should link to it."""
    url: str
    keywords: tuple[str, ...]

    @property
    def primary_keyword(self) -> Optional[str]:
        return self.keywords[0] if self.keywords else None


@dataclass(frozen=True)
class ScoredLink:
    link: LinkRecord
    score: int

    def to_dict(self) -> dict:
        return {"url": self.link.url, "keywords": list(self.link.keywords), "score": self.score}


@dataclass
class LinkInsertionResult:
    document: str
    links_added: int = 0
    links_considered: list[ScoredLink] = field(default_factory=list)


def load_link_database(path: Union[str, Path]) -> list[LinkRecord]:
    """Load link records from a JSON array of ``{"url", "keywords"}`` objects.

    A missing or malformed file is logged and treated as an empty database.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        links = [
            LinkRecord(url=item["url"], keywords=tuple(item.get("keywords", [])))
            for item in raw
        ]
    except (OSError, ValueError, TypeError, KeyError) as e:
        logger.error("Failed to load link database from %s: %s", path, e)
        return []

    logger.info("Loaded %d internal links from %s", len(links), path)
    return links


def extract_terms(text: str) -> list[str]:
    """Extract lowercase terms from markdown, in document order.

    Headings markers, link targets and emphasis are stripped first; tokens
    shorter than two letters and common words are dropped.
    """
    if not isinstance(text, str):
        raise InvalidInputError(f"expected text to be str, got {type(text).__name__}")

    clean_text = _HEADER_MARKER.sub("", text)
    clean_text = _MARKDOWN_LINK.sub(r"\1", clean_text)
    clean_text = _EMPHASIS.sub("", clean_text).lower()

    return [word for word in _TERM.findall(clean_text) if word not in STOPWORDS]


def _contains_sequence(terms: Sequence[str], words: Sequence[str]) -> bool:
    n = len(words)
    return any(
        list(terms[i:i + n]) == list(words)
        for i in range(len(terms) - n + 1)
    )


def score_link_relevance(link: LinkRecord, terms: Sequence[str]) -> int:
    """Score a link by keyword overlap with the document terms.

    A multi-word keyword found as consecutive terms earns 3 points; every
    keyword word present anywhere in the document earns 1 more.
    """
    term_set = set(terms)
    score = 0

    for keyword in link.keywords:
        keyword_words = keyword.lower().split()

        if len(keyword_words) > 1 and _contains_sequence(terms, keyword_words):
            score += 3

        score += sum(1 for word in keyword_words if word in term_set)

    return score


def score_links(links: Sequence[LinkRecord], terms: Sequence[str]) -> list[ScoredLink]:
    """Score every link against the same term list, keeping database order."""
    return [ScoredLink(link=link, score=score_link_relevance(link, terms)) for link in links]


def is_in_header(markdown: str, position: int) -> bool:
    """Check whether the line containing ``position`` is a markdown heading."""
    line_start = markdown.rfind("\n", 0, position) + 1
    line_end = markdown.find("\n", position)
    if line_end == -1:
        line_end = len(markdown)

    line = markdown[line_start:line_end].strip()
    return _HEADER_MARKER.match(line) is not None


def is_already_linked(markdown: str, position: int) -> bool:
    """Check whether ``position`` falls inside an existing ``[text](url)`` link."""
    bracket_start = -1
    for i in range(min(position, len(markdown) - 1), -1, -1):
        if markdown[i] == "[":
            bracket_start = i
            break
        if markdown[i] == "\n":
            break

    if bracket_start == -1:
        return False

    close_bracket = markdown.find("](", bracket_start)
    if close_bracket == -1:
        return False

    close_paren = markdown.find(")", close_bracket)
    if close_paren == -1:
        return False

    return bracket_start <= position <= close_paren


def find_phrase(markdown: str, phrase: str, start: int = 0) -> Optional[re.Match]:
    """Find the next case-insensitive occurrence of ``phrase`` from ``start``."""
    if not phrase:
        return None
    return re.compile(re.escape(phrase), re.IGNORECASE).search(markdown, start)


def _first_eligible(markdown: str, phrase: str) -> Optional[re.Match]:
    pos = 0
    while (match := find_phrase(markdown, phrase, pos)) is not None:
        if not is_in_header(markdown, match.start()) and not is_already_linked(markdown, match.start()):
            return match
        pos = match.start() + 1
    return None


def _link_first_mention(markdown: str, link: LinkRecord) -> Optional[str]:
    primary = (link.primary_keyword or "").strip()
    if not primary:
        return None

    # The first word is only tried when the phrase is absent altogether
    if find_phrase(markdown, primary) is not None:
        match = _first_eligible(markdown, primary)
    else:
        match = _first_eligible(markdown, primary.split()[0])
    if match is None:
        return None

    return f"{markdown[:match.start()]}[{match.group(0)}]({link.url}){markdown[match.end():]}"


def insert_internal_links(
    markdown: str,
    links: Sequence[LinkRecord],
    max_links: int = DEFAULT_MAX_LINKS,
) -> LinkInsertionResult:
    """Insert up to ``max_links`` internal links into a markdown document.

    Links are applied one after another, so each search sees the document
    as already modified by the previous insertions.
    """
    if not links:
        return LinkInsertionResult(document=markdown)

    terms = extract_terms(markdown)
    scored = score_links(links, terms)

    selected = sorted(
        (scored_link for scored_link in scored if scored_link.score > 0),
        key=lambda scored_link: scored_link.score,
        reverse=True,
    )[:max_links]

    if not selected:
        return LinkInsertionResult(document=markdown, links_considered=scored[:DIAGNOSTIC_LINKS])

    updated = markdown
    links_added = 0
    for scored_link in selected:
        linked = _link_first_mention(updated, scored_link.link)
        if linked is None:
            continue
        updated = linked
        links_added += 1

    logger.debug("Inserted %d of %d selected internal links", links_added, len(selected))
    return LinkInsertionResult(document=updated, links_added=links_added, links_considered=selected)
