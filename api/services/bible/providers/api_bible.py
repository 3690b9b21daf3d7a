# api/services/bible/providers/api_bible.py
"""
API.Bible adapter (https://scripture.api.bible).

Needs API_BIBLE_KEY. Chapter text is requested as plain text with inline
verse numbers, so the payload is one string of "[1] ... [2] ..." segments.
"""

import logging
from typing import Optional

from ..models import ChapterResult, SearchHit
from ..namespaces import ProviderNamespace
from ..reference_parser import (
    ReferenceParseError,
    ScriptureReference,
    get_book_name,
    get_provider_book_id,
    parse_reference,
)
from ..text_cleaning import canonical_verses, clean_verse_text, parse_bracketed_verses
from ..translations import get_registry
from .base import BibleProvider, ProviderResult

logger = logging.getLogger(__name__)

# KJV on API.Bible
HEALTH_CHECK_BIBLE_ID = "55212e3cf5d04d49-01"


class ApiBibleProvider(BibleProvider):
    """Client for the API.Bible REST API."""

    namespace = ProviderNamespace.API_BIBLE
    base_url = "https://rest.api.bible/v1"

    CHAPTER_PARAMS = {
        "content-type": "text",
        "include-notes": "false",
        "include-titles": "false",
        "include-chapter-numbers": "false",
        "include-verse-numbers": "true",
    }

    def __init__(self, api_key: Optional[str] = None, registry=None, timeout: Optional[float] = None, session=None):
        super().__init__(timeout=timeout, session=session)
        self._api_key = api_key
        self.registry = registry or get_registry()

    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def health_check_code(self) -> str:
        return HEALTH_CHECK_BIBLE_ID

    def _headers(self) -> dict:
        return {"api-key": self._api_key}

    def fetch_chapter(self, reference: ScriptureReference, translation_code: str, timeout=None) -> ProviderResult:
        if not self.is_configured():
            return ProviderResult.error(self.namespace, "credential missing (API_BIBLE_KEY)")

        usfm = get_provider_book_id(reference.book, self.namespace)
        if usfm is None:
            return ProviderResult.error(self.namespace, f"no book id for {reference.book}")

        url = f"{self.base_url}/bibles/{translation_code}/chapters/{usfm}.{reference.chapter}"
        payload, reason = self._get_json(url, params=self.CHAPTER_PARAMS, headers=self._headers(), timeout=timeout)
        if payload is None:
            return ProviderResult.error(self.namespace, reason)

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            return ProviderResult.error(self.namespace, "unexpected payload shape")

        verses = canonical_verses(parse_bracketed_verses(data.get("content") or ""))

        descriptor = self.registry.find_descriptor(self.namespace, translation_code)
        chapter = ChapterResult(
            book=reference.book,
            chapter=reference.chapter,
            translation_code=descriptor.display_abbreviation if descriptor else translation_code,
            translation_name=descriptor.display_name if descriptor else translation_code,
            verses=verses,
            source_tag=str(self.namespace),
            language=descriptor.locale_tag if descriptor else "en",
        )
        return ProviderResult.success(self.namespace, chapter)

    def search_keyword(self, query: str, translation_code: str, limit: int = 20) -> Optional[list[SearchHit]]:
        """Search one bible. Unconfigured providers report no support (None)."""
        if not self.is_configured():
            return None

        url = f"{self.base_url}/bibles/{translation_code}/search"
        payload, reason = self._get_json(url, params={"query": query, "limit": limit}, headers=self._headers())
        if payload is None:
            logger.warning(f"API.Bible search failed for {query!r}: {reason}")
            return []

        data = (payload.get("data") if isinstance(payload, dict) else None) or {}
        hits = []
        for item in data.get("verses") or []:
            hit = self._to_hit(item)
            if hit:
                hits.append(hit)
            if len(hits) >= limit:
                break
        return hits

    def _to_hit(self, item: dict) -> Optional[SearchHit]:
        text = clean_verse_text(item.get("text", ""))
        if not text:
            return None

        # Prefer the structured id ("JHN.3.16"); fall back to the display reference
        parts = str(item.get("id", "")).split(".")
        if len(parts) == 3 and parts[1].isdigit() and parts[2].isdigit():
            book = get_book_name(parts[0], self.namespace)
            if book:
                return SearchHit(book, int(parts[1]), int(parts[2]), text)

        try:
            ref = parse_reference(item.get("reference", ""))
        except ReferenceParseError:
            return None
        if ref.verse_start is None:
            return None
        return SearchHit(ref.book, ref.chapter, ref.verse_start, text)
