# api/services/bible/search.py
"""
Search Aggregator

Most providers have no full-text search, so keyword search scans a
curated set of passages likely to mention the keyword, fetching each
chapter through the FallbackOrchestrator. If that finds nothing, the
providers that do support keyword search are asked directly.

Reference-shaped queries ("John 3:16", "Romans 8") skip all of that and
return the referenced verses.
"""

import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Any, Dict, List, Optional

import yaml

from .canon import BOOK_NUMBERS
from .namespaces import ProviderNamespace
from .models import SearchHit
from .reference_parser import ReferenceParseError, parse_reference

logger = logging.getLogger(__name__)


CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    'config',
    'search_topics.yml'
)

FILTER_ALL = "all"
FILTER_OT = "ot"
FILTER_NT = "nt"

# Used for the keyword-search fallback when the requested translation
# isn't served by that provider
DEFAULT_BOLLS_SEARCH_CODE = "KJV"
DEFAULT_API_BIBLE_SEARCH_ID = "55212e3cf5d04d49-01"


@lru_cache(maxsize=1)
def load_topics() -> Dict[str, Any]:
    """Load the curated topic table from YAML config."""
    if not os.path.exists(CONFIG_PATH):
        return get_default_topics()

    with open(CONFIG_PATH, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def get_default_topics() -> Dict[str, Any]:
    """Minimal table if config file missing."""
    return {
        'version': '1.0',
        'topics': {},
        'generic': ["Psalm 23", "John 3", "Romans 8", "1 Corinthians 13"],
        'verse_of_the_day': ["John 3:16"],
    }


def reload_topics():
    """Clear cache and reload topics."""
    load_topics.cache_clear()
    return load_topics()


def candidate_references(query: str, topics: Optional[Dict[str, Any]] = None) -> List[str]:
    """
    Passages to scan for a keyword.

    A topic matches when the query contains its key or the key contains
    the query ("forgive" -> forgiveness). First match wins.
    """
    topics = topics if topics is not None else load_topics()
    keyword = (query or "").strip().lower()
    if keyword:
        for key, refs in (topics.get('topics') or {}).items():
            if key in keyword or keyword in key:
                return list(refs)
    return list(topics.get('generic') or [])


def verse_of_the_day_reference(today: Optional[date] = None, topics: Optional[Dict[str, Any]] = None) -> str:
    """Deterministic pick from the curated list by day of year."""
    topics = topics if topics is not None else load_topics()
    verses = topics.get('verse_of_the_day') or ["John 3:16"]
    today = today or date.today()
    return verses[today.timetuple().tm_yday % len(verses)]


@dataclass
class SearchResult:
    """Collected hits plus counts over the whole collected set."""
    query: str
    hits: List[SearchHit] = field(default_factory=list)
    source: str = "curated"
    filter: str = FILTER_ALL

    @property
    def total_count(self) -> int:
        return len(self.hits)

    @property
    def ot_count(self) -> int:
        return sum(1 for hit in self.hits if hit.testament == "OT")

    @property
    def nt_count(self) -> int:
        return sum(1 for hit in self.hits if hit.testament == "NT")

    @property
    def book_counts(self) -> Dict[str, int]:
        counts = Counter(hit.book for hit in self.hits)
        return dict(sorted(counts.items(), key=lambda item: BOOK_NUMBERS.get(item[0], 99)))

    def filtered(self, filter_value: Optional[str] = None) -> List[SearchHit]:
        """Narrow hits by testament or book name; never fetches."""
        value = (filter_value or self.filter or FILTER_ALL).strip().lower()
        if value == FILTER_ALL:
            return list(self.hits)
        if value == FILTER_OT:
            return [hit for hit in self.hits if hit.testament == "OT"]
        if value == FILTER_NT:
            return [hit for hit in self.hits if hit.testament == "NT"]
        return [hit for hit in self.hits if hit.book.lower() == value]

    def to_dict(self, filter_value: Optional[str] = None) -> dict:
        filter_value = filter_value or self.filter or FILTER_ALL
        return {
            "results": [hit.to_dict() for hit in self.filtered(filter_value)],
            "totalCount": self.total_count,
            "otCount": self.ot_count,
            "ntCount": self.nt_count,
            "bookCounts": self.book_counts,
            "filter": filter_value,
        }


class SearchAggregator:
    """
    Keyword and reference search on top of the FallbackOrchestrator.

    Usage:
        search = SearchAggregator(orchestrator, providers)
        result = search.search("faith", filter="nt")
        payload = result.to_dict("nt")
    """

    def __init__(self, orchestrator, providers: Optional[dict] = None, topics: Optional[Dict[str, Any]] = None):
        self.orchestrator = orchestrator
        self.providers = providers if providers is not None else orchestrator.providers
        self.topics = topics

    def search(
        self,
        query: str,
        translation_id: Optional[str] = None,
        filter: str = FILTER_ALL,
        language: Optional[str] = None,
        limit: int = 20,
    ) -> SearchResult:
        """
        Run a search.

        ``filter`` ("all", "ot", "nt" or a book name) narrows the results
        reported by SearchResult.to_dict(); counts always cover every hit.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("Search query required")

        reference = self._as_reference(query)
        if reference is not None:
            result = self._reference_search(query, reference, translation_id, language, limit)
        else:
            result = self._curated_search(query, translation_id, language, limit)
            if not result.hits:
                logger.info(f"Curated search found nothing for {query!r}, trying provider search")
                result = self._provider_search(query, translation_id, language, limit)

        result.filter = filter or FILTER_ALL
        return result

    @staticmethod
    def _as_reference(query: str):
        try:
            return parse_reference(query)
        except ReferenceParseError:
            return None

    def _chapter_hits(self, reference, translation_id, language) -> List[SearchHit]:
        chapter = self.orchestrator.resolve_chapter(reference.book, reference.chapter, translation_id, language)
        if chapter is None:
            return []
        return [
            SearchHit(chapter.book, chapter.chapter, verse.number, verse.text)
            for verse in chapter.verse_range(reference.verse_start, reference.verse_end)
        ]

    def _reference_search(self, query, reference, translation_id, language, limit) -> SearchResult:
        hits = self._chapter_hits(reference, translation_id, language)
        return SearchResult(query=query, hits=hits[:limit], source="reference")

    def _curated_search(self, query, translation_id, language, limit) -> SearchResult:
        needle = query.lower()
        hits: List[SearchHit] = []
        seen = set()

        for raw in candidate_references(query, self.topics):
            if len(hits) >= limit:
                break
            try:
                reference = parse_reference(raw)
            except ReferenceParseError:
                logger.warning(f"Skipping bad curated reference {raw!r}")
                continue

            for hit in self._chapter_hits(reference, translation_id, language):
                key = (hit.book, hit.chapter, hit.verse)
                if key in seen or needle not in hit.text.lower():
                    continue
                seen.add(key)
                hits.append(hit)
                if len(hits) >= limit:
                    break

        return SearchResult(query=query, hits=hits, source="curated")

    def _provider_search(self, query, translation_id, language, limit) -> SearchResult:
        registry = self.orchestrator.registry
        descriptor = registry.resolve_descriptor(language, translation_id)

        for namespace in (ProviderNamespace.BOLLS, ProviderNamespace.API_BIBLE):
            provider = self.providers.get(namespace)
            if provider is None:
                continue

            if descriptor.namespace is namespace:
                code = descriptor.provider_translation_code
            elif namespace is ProviderNamespace.BOLLS:
                code = DEFAULT_BOLLS_SEARCH_CODE
            else:
                code = DEFAULT_API_BIBLE_SEARCH_ID

            hits = provider.search_keyword(query, code, limit)
            if hits:
                logger.info(f"Provider search via {namespace} found {len(hits)} hits for {query!r}")
                return SearchResult(query=query, hits=hits[:limit], source=str(namespace))

        return SearchResult(query=query, hits=[], source="none")
