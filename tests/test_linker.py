"""
Tests for internal link scoring and insertion.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gazette_watch.exceptions import InvalidInputError
from gazette_watch.services.linker import (
    LinkRecord,
    extract_terms,
    insert_internal_links,
    is_already_linked,
    is_in_header,
    load_link_database,
    score_link_relevance,
)


def link(url: str, *keywords: str) -> LinkRecord:
    return LinkRecord(url=url, keywords=tuple(keywords))


class TestExtractTerms:
    def test_drops_stopwords_and_short_tokens(self):
        assert extract_terms("The Company and the Director") == ["company", "director"]
        assert extract_terms("a b cd") == ["cd"]

    def test_strips_markdown(self):
        text = "## Heading\n**Bold** [Link Text](http://x.com/path) `code`"
        assert extract_terms(text) == ["heading", "bold", "link", "text", "code"]

    def test_splits_on_punctuation(self):
        assert extract_terms("Pre-pack sale, completed.") == ["pre", "pack", "sale", "completed"]

    def test_rejects_non_text(self):
        with pytest.raises(InvalidInputError):
            extract_terms(None)


class TestScoring:
    def test_phrase_bonus_plus_word_hits(self):
        terms = ["distressed", "business", "buyers", "guide"]
        assert score_link_relevance(link("/b", "distressed business buyers"), terms) == 6

    def test_single_word_hit(self):
        terms = ["distressed", "business", "buyers", "guide"]
        assert score_link_relevance(link("/s", "distressed seller"), terms) == 1

    def test_non_contiguous_words_get_no_bonus(self):
        terms = ["distressed", "guide", "business"]
        assert score_link_relevance(link("/b", "distressed business"), terms) == 2

    def test_phrase_cannot_run_past_the_end(self):
        terms = ["guide", "distressed"]
        assert score_link_relevance(link("/b", "distressed business"), terms) == 1

    def test_scores_sum_over_keywords(self):
        terms = ["administration", "process", "creditors"]
        record = link("/a", "administration process", "creditors")
        assert score_link_relevance(record, terms) == 3 + 2 + 1

    def test_no_keywords_scores_zero(self):
        assert score_link_relevance(link("/x"), ["anything"]) == 0


class TestPositions:
    def test_is_in_header(self):
        text = "Intro\n## Section two\nBody"
        assert is_in_header(text, text.index("Section")) is True
        assert is_in_header(text, text.index("Body")) is False
        assert is_in_header("#hashtag here", 1) is False

    def test_is_already_linked(self):
        text = "[Acme](https://acme.example) is here"
        assert is_already_linked(text, 1) is True
        assert is_already_linked(text, text.index("acme.example")) is True
        assert is_already_linked(text, text.index("is here")) is False


class TestInsertInternalLinks:
    def test_skips_heading_and_links_body_mention(self):
        doc = "# Distressed Business Buyers\nRead more about distressed business buyers here."
        result = insert_internal_links(doc, [link("/buyers", "distressed business buyers")])

        assert result.document == (
            "# Distressed Business Buyers\n"
            "Read more about [distressed business buyers](/buyers) here."
        )
        assert result.links_added == 1

    def test_keeps_original_casing(self):
        doc = "Read about Distressed Business Buyers today."
        result = insert_internal_links(doc, [link("/buyers", "distressed business buyers")])
        assert "[Distressed Business Buyers](/buyers)" in result.document

    def test_respects_max_links(self):
        doc = "Administration, liquidation, receivership, insolvency and restructuring all appear here."
        links = [
            link("/admin", "administration"),
            link("/liq", "liquidation"),
            link("/rec", "receivership"),
            link("/ins", "insolvency"),
            link("/res", "restructuring"),
        ]
        result = insert_internal_links(doc, links, max_links=2)

        assert result.links_added == 2
        assert result.document.count("](") == 2
        assert [scored.link.url for scored in result.links_considered] == ["/admin", "/liq"]

    def test_highest_score_first(self):
        doc = "Company rescue options for company directors."
        links = [
            link("/directors", "directors"),
            link("/rescue", "company rescue"),
        ]
        result = insert_internal_links(doc, links)

        assert [scored.link.url for scored in result.links_considered] == ["/rescue", "/directors"]
        assert result.document == "[Company rescue](/rescue) options for company [directors](/directors)."

    def test_empty_database_returns_document_unchanged(self):
        result = insert_internal_links("Some text about administration.", [])

        assert result.document == "Some text about administration."
        assert result.links_added == 0
        assert result.links_considered == []

    def test_no_relevant_links_reports_considered(self):
        doc = "Nothing relevant in this paragraph."
        links = [link(f"/page-{i}", f"unrelated{i}") for i in range(12)]
        result = insert_internal_links(doc, links)

        assert result.document == doc
        assert result.links_added == 0
        assert len(result.links_considered) == 10
        assert all(scored.score == 0 for scored in result.links_considered)

    def test_skips_existing_links(self):
        doc = "See [company rescue guide](/old) for company rescue tips."
        result = insert_internal_links(doc, [link("/rescue", "company rescue")])

        assert result.document == "See [company rescue guide](/old) for [company rescue](/rescue) tips."

    def test_later_links_see_earlier_insertions(self):
        doc = "Learn about pre-pack administration today."
        links = [
            link("/prepack", "pre-pack administration"),
            link("/admin", "administration"),
        ]
        result = insert_internal_links(doc, links)

        assert result.document == "Learn about [pre-pack administration](/prepack) today."
        assert result.links_added == 1

    def test_falls_back_to_first_keyword_word(self):
        doc = "Buyers should act quickly."
        result = insert_internal_links(doc, [link("/guide", "buyers guide")])

        assert result.document == "[Buyers](/guide) should act quickly."
        assert result.links_added == 1

    def test_no_first_word_fallback_when_phrase_is_already_linked(self):
        doc = "See [company rescue guide](/old). Company directors must act."
        result = insert_internal_links(doc, [link("/rescue", "company rescue")])

        assert result.document == doc
        assert result.links_added == 0

    def test_html_headings_are_plain_text(self):
        doc = "<h2>Distressed business buyers</h2>\n<p>Read on.</p>"
        result = insert_internal_links(doc, [link("/buyers", "distressed business buyers")])

        assert result.document == "<h2>[Distressed business buyers](/buyers)</h2>\n<p>Read on.</p>"

    def test_to_dict(self):
        result = insert_internal_links("Insolvency help.", [link("/ins", "insolvency")])
        assert result.links_considered[0].to_dict() == {
            "url": "/ins",
            "keywords": ["insolvency"],
            "score": 1,
        }


class TestLoadLinkDatabase:
    def test_loads_records(self, tmp_path):
        path = tmp_path / "links.json"
        path.write_text(json.dumps([
            {"url": "/a", "keywords": ["administration", "administrator"]},
            {"url": "/b"},
        ]))

        links = load_link_database(path)

        assert links == [link("/a", "administration", "administrator"), link("/b")]
        assert links[0].primary_keyword == "administration"
        assert links[1].primary_keyword is None

    def test_missing_file_is_empty(self, tmp_path):
        assert load_link_database(tmp_path / "missing.json") == []

    def test_malformed_file_is_empty(self, tmp_path):
        path = tmp_path / "links.json"
        path.write_text("{not json")
        assert load_link_database(path) == []

    def test_bundled_database_loads(self):
        assert load_link_database(Path(__file__).parent.parent / "data" / "adminlist-links.json")
