# api/services/bible/providers/bolls.py
"""
Bolls.life adapter.

Credential-free, multilingual. Chapters come back as a JSON array of
{pk, verse, text} with HTML markup and, for some translations, Strong's
numbers inlined as <S>1234</S>.

Docs: https://bolls.life/api/
"""

import logging
from typing import Optional

from ..models import ChapterResult, SearchHit
from ..namespaces import ProviderNamespace
from ..reference_parser import ScriptureReference, get_book_name, get_provider_book_id
from ..text_cleaning import canonical_verses, clean_verse_text
from ..translations import get_registry
from .base import BibleProvider, ProviderResult

logger = logging.getLogger(__name__)


class BollsProvider(BibleProvider):
    """Client for https://bolls.life."""

    namespace = ProviderNamespace.BOLLS
    base_url = "https://bolls.life"

    def __init__(self, registry=None, timeout: Optional[float] = None, session=None):
        super().__init__(timeout=timeout, session=session)
        self.registry = registry or get_registry()

    @property
    def health_check_code(self) -> str:
        return "KJV"

    def _describe(self, code: str):
        """(abbreviation, name, language) for a Bolls code."""
        descriptor = self.registry.find_descriptor(self.namespace, code)
        if descriptor:
            return descriptor.display_abbreviation, descriptor.display_name, descriptor.locale_tag
        return code, code, "en"

    def fetch_chapter(self, reference: ScriptureReference, translation_code: str, timeout=None) -> ProviderResult:
        book_id = get_provider_book_id(reference.book, self.namespace)
        if book_id is None:
            return ProviderResult.error(self.namespace, f"no book id for {reference.book}")

        url = f"{self.base_url}/get-chapter/{translation_code}/{book_id}/{reference.chapter}/"
        data, reason = self._get_json(url, timeout=timeout)
        if data is None:
            return ProviderResult.error(self.namespace, reason)
        if not isinstance(data, list):
            return ProviderResult.error(self.namespace, "unexpected payload shape")

        verses = canonical_verses(
            (item.get("verse"), item.get("text", "")) for item in data if isinstance(item, dict)
        )
        abbreviation, name, language = self._describe(translation_code)
        chapter = ChapterResult(
            book=get_book_name(book_id, self.namespace) or reference.book,
            chapter=reference.chapter,
            translation_code=abbreviation,
            translation_name=name,
            verses=verses,
            source_tag=str(self.namespace),
            language=language,
        )
        return ProviderResult.success(self.namespace, chapter)

    def search_keyword(self, query: str, translation_code: str, limit: int = 20) -> Optional[list[SearchHit]]:
        """
        Full-text search in one translation.

        Returns:
            List of SearchHit (possibly empty). An upstream failure also
            gives an empty list so callers can try the next search path.
        """
        url = f"{self.base_url}/v2/find/{translation_code}"
        params = {
            "search": query,
            "match_case": "false",
            "match_whole": "false",
            "limit": limit,
        }
        data, reason = self._get_json(url, params=params)
        if data is None:
            logger.warning(f"Bolls search failed for {query!r}: {reason}")
            return []

        # v2 wraps results in an object; the older endpoint returns a bare list
        items = data.get("results", []) if isinstance(data, dict) else data
        hits = []
        for item in items or []:
            if not isinstance(item, dict):
                continue
            book = get_book_name(item.get("book"), self.namespace)
            text = clean_verse_text(item.get("text", ""))
            if not book or not text:
                continue
            try:
                hits.append(SearchHit(book, int(item["chapter"]), int(item["verse"]), text))
            except (KeyError, TypeError, ValueError):
                continue
            if len(hits) >= limit:
                break
        return hits

    def fetch_books(self, translation_code: str) -> Optional[list[dict]]:
        """Books available in a translation, None on failure."""
        data, reason = self._get_json(f"{self.base_url}/get-books/{translation_code}/")
        if not isinstance(data, list):
            logger.warning(f"Bolls books lookup failed for {translation_code}: {reason or 'bad payload'}")
            return None
        return [
            {
                "bookId": item.get("bookid"),
                "name": item.get("name"),
                "chapters": item.get("chapters"),
                "canonicalName": get_book_name(item.get("bookid"), self.namespace),
            }
            for item in data
            if isinstance(item, dict)
        ]
