# api/services/bible/__init__.py
"""
Scripture content resolution.

This package provides:
- TranslationRegistry: locale -> translation -> provider lookups
- parse_reference / find_references: reference normalization
- Provider adapters for Bolls, API.Bible, GetBible, bible-api.com, labs.bible.org
- FallbackOrchestrator: first-success chapter resolution across providers
- SearchAggregator: curated keyword search and reference lookup
"""

from .canon import CANON, OLD_TESTAMENT, NEW_TESTAMENT, CHAPTER_COUNTS, testament_of
from .errors import ContentNotFoundError
from .fallback import FallbackOrchestrator
from .models import CanonicalVerse, ChapterResult, SearchHit
from .namespaces import ProviderNamespace
from .providers import build_providers
from .reference_parser import (
    ReferenceParseError,
    ScriptureReference,
    find_references,
    format_reference,
    get_book_name,
    get_provider_book_id,
    is_valid_reference,
    normalize_book_name,
    parse_reference,
)
from .search import SearchAggregator, SearchResult, verse_of_the_day_reference
from .translations import TranslationDescriptor, TranslationRegistry, get_registry

__all__ = [
    "CANON",
    "OLD_TESTAMENT",
    "NEW_TESTAMENT",
    "CHAPTER_COUNTS",
    "testament_of",
    "ContentNotFoundError",
    "FallbackOrchestrator",
    "CanonicalVerse",
    "ChapterResult",
    "SearchHit",
    "ProviderNamespace",
    "build_providers",
    "ReferenceParseError",
    "ScriptureReference",
    "find_references",
    "format_reference",
    "get_book_name",
    "get_provider_book_id",
    "is_valid_reference",
    "normalize_book_name",
    "parse_reference",
    "SearchAggregator",
    "SearchResult",
    "verse_of_the_day_reference",
    "TranslationDescriptor",
    "TranslationRegistry",
    "get_registry",
]
