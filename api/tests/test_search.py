# api/tests/test_search.py
"""
Tests for search.py - curated keyword search, reference search, provider search.
"""

import os
import sys
from datetime import date

import pytest

# Add api directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.bible.models import CanonicalVerse, ChapterResult, SearchHit
from services.bible.namespaces import ProviderNamespace as NS
from services.bible.search import (
    SearchAggregator,
    SearchResult,
    candidate_references,
    load_topics,
    verse_of_the_day_reference,
)
from services.bible.translations import TranslationRegistry, load_translations

TOPICS = {
    "topics": {
        "love": ["John 3:16", "1 John 4:7-8", "Genesis 29:20"],
        "faith": ["Hebrews 11:1"],
    },
    "generic": ["Psalm 23"],
    "verse_of_the_day": ["John 3:16", "Psalm 23:1", "Romans 8:28"],
}

CHAPTERS = {
    ("John", 3): {16: "For God so loved the world", 17: "For God sent not his Son"},
    ("1 John", 4): {7: "Beloved, let us love one another", 8: "for God is love", 9: "In this was manifested"},
    ("Genesis", 29): {20: "for the love he had to her"},
    ("Hebrews", 11): {1: "Now faith is the substance"},
    ("Psalms", 23): {1: "The LORD is my shepherd"},
}


class FakeOrchestrator:
    def __init__(self, chapters=None, providers=None):
        self.chapters = CHAPTERS if chapters is None else chapters
        self.providers = providers or {}
        self.registry = TranslationRegistry(load_translations())
        self.requests = []

    def resolve_chapter(self, book, chapter, translation_id=None, language=None):
        self.requests.append((book, chapter))
        verses = self.chapters.get((book, chapter))
        if verses is None:
            return None
        return ChapterResult(
            book, chapter, "KJV", "King James Version",
            [CanonicalVerse(n, text) for n, text in sorted(verses.items())],
            "bolls",
        )


class FakeSearchProvider:
    def __init__(self, hits):
        self.hits = hits
        self.queries = []

    def search_keyword(self, query, code, limit=20):
        self.queries.append((query, code, limit))
        return self.hits


def test_topics_config_loads():
    topics = load_topics()
    assert "love" in topics["topics"]
    assert topics["generic"]
    assert topics["verse_of_the_day"]


def test_candidate_references_matching():
    assert candidate_references("love", TOPICS) == TOPICS["topics"]["love"]
    # Query containing the key, and key containing the query
    assert candidate_references("God's love", TOPICS) == TOPICS["topics"]["love"]
    assert candidate_references("fait", TOPICS) == ["Hebrews 11:1"]
    assert candidate_references("shepherd", TOPICS) == ["Psalm 23"]


def test_verse_of_the_day_is_deterministic():
    day = date(2024, 1, 2)  # day of year 2
    assert verse_of_the_day_reference(day, TOPICS) == "Romans 8:28"
    assert verse_of_the_day_reference(day, TOPICS) == verse_of_the_day_reference(day, TOPICS)


def test_curated_search_filters_by_keyword():
    search = SearchAggregator(FakeOrchestrator(), providers={}, topics=TOPICS)
    result = search.search("love")

    assert result.source == "curated"
    assert [(h.book, h.chapter, h.verse) for h in result.hits] == [
        ("John", 3, 16),
        ("1 John", 4, 7),
        ("1 John", 4, 8),
        ("Genesis", 29, 20),
    ]


def test_counts_cover_all_hits_while_filter_narrows_results():
    search = SearchAggregator(FakeOrchestrator(), providers={}, topics=TOPICS)
    result = search.search("love", filter="nt")
    payload = result.to_dict()

    assert payload["filter"] == "nt"
    assert payload["totalCount"] == 4
    assert payload["otCount"] == 1
    assert payload["ntCount"] == 3
    assert payload["otCount"] + payload["ntCount"] == payload["totalCount"]
    assert len(payload["results"]) == 3
    assert all(r["testament"] == "NT" for r in payload["results"])
    # Canon order, not insertion order
    assert list(payload["bookCounts"]) == ["Genesis", "John", "1 John"]


def test_filter_by_book_name():
    search = SearchAggregator(FakeOrchestrator(), providers={}, topics=TOPICS)
    result = search.search("love")
    assert [h.verse for h in result.filtered("1 john")] == [7, 8]
    assert result.filtered("ot")[0].book == "Genesis"
    assert len(result.filtered("all")) == 4


def test_limit_caps_hits():
    search = SearchAggregator(FakeOrchestrator(), providers={}, topics=TOPICS)
    assert len(search.search("love", limit=2).hits) == 2


def test_reference_query_returns_the_verses():
    orchestrator = FakeOrchestrator()
    search = SearchAggregator(orchestrator, providers={}, topics=TOPICS)
    result = search.search("1 John 4:7-8")

    assert result.source == "reference"
    assert [h.verse for h in result.hits] == [7, 8]
    assert orchestrator.requests == [("1 John", 4)]


def test_falls_back_to_provider_search():
    """Nothing in the curated passages: ask Bolls, then API.Bible."""
    bolls = FakeSearchProvider([])
    api_bible = FakeSearchProvider([SearchHit("Micah", 6, 8, "do justly, and to love mercy")])
    orchestrator = FakeOrchestrator(providers={NS.BOLLS: bolls, NS.API_BIBLE: api_bible})
    search = SearchAggregator(orchestrator, topics=TOPICS)

    result = search.search("mercy", language="en")

    assert result.source == "api-bible"
    assert result.hits[0].book == "Micah"
    # The en default is an API.Bible id, so Bolls searched its default code
    assert bolls.queries == [("mercy", "KJV", 20)]
    assert api_bible.queries[0][1] == "06125adad2d5898a-01"


def test_provider_search_uses_requested_bolls_translation():
    bolls = FakeSearchProvider([SearchHit("Luke", 6, 36, "Sed misericordiosos")])
    orchestrator = FakeOrchestrator(providers={NS.BOLLS: bolls})
    search = SearchAggregator(orchestrator, topics=TOPICS)

    result = search.search("misericordia", language="es")

    assert result.source == "bolls"
    assert bolls.queries[0][1] == "RV1960"


def test_unsupported_provider_search_gives_empty_result():
    orchestrator = FakeOrchestrator(providers={NS.API_BIBLE: FakeSearchProvider(None)})
    result = SearchAggregator(orchestrator, topics=TOPICS).search("zzzz")
    assert result.hits == []
    assert result.to_dict()["totalCount"] == 0


def test_empty_query_rejected():
    search = SearchAggregator(FakeOrchestrator(), providers={}, topics=TOPICS)
    with pytest.raises(ValueError):
        search.search("   ")


def test_search_result_defaults():
    result = SearchResult(query="x")
    assert result.to_dict() == {
        "results": [],
        "totalCount": 0,
        "otCount": 0,
        "ntCount": 0,
        "bookCounts": {},
        "filter": "all",
    }
