# api/services/bible/providers/bible_api_com.py
"""
bible-api.com adapter (English, public domain translations).

The API reads "Jude 1" as "Jude 1:1", so single-chapter books are sent
as an explicit verse range.
"""

import logging
from typing import Optional
from urllib.parse import quote

from ..models import ChapterResult
from ..namespaces import ProviderNamespace
from ..reference_parser import ScriptureReference, expand_single_chapter
from ..text_cleaning import canonical_verses, collapse_whitespace
from ..translations import get_registry
from .base import BibleProvider, ProviderResult

logger = logging.getLogger(__name__)


class BibleApiComProvider(BibleProvider):
    """Client for https://bible-api.com."""

    namespace = ProviderNamespace.BIBLE_API
    base_url = "https://bible-api.com"

    def __init__(self, registry=None, timeout: Optional[float] = None, session=None):
        super().__init__(timeout=timeout, session=session)
        self.registry = registry or get_registry()

    @property
    def health_check_code(self) -> str:
        return "kjv"

    def normalize_code(self, code: Optional[str]) -> str:
        """bible-api.com only knows a handful of codes; anything else is kjv."""
        return self.registry.normalize_bible_api_code(code)

    def _translation_name(self, code: str) -> str:
        return self.registry.bible_api_name(code)

    def _get_passage(self, reference_text: str, code: str, timeout=None):
        url = f"{self.base_url}/{quote(reference_text)}"
        return self._get_json(url, params={"translation": code}, timeout=timeout)

    def fetch_chapter(self, reference: ScriptureReference, translation_code: str, timeout=None) -> ProviderResult:
        code = self.normalize_code(translation_code)
        request_ref = expand_single_chapter(ScriptureReference(reference.book, reference.chapter))

        data, reason = self._get_passage(request_ref.normalized, code, timeout=timeout)
        if data is None:
            return ProviderResult.error(self.namespace, reason)
        if not isinstance(data, dict):
            return ProviderResult.error(self.namespace, "unexpected payload shape")

        verses = canonical_verses(
            (item.get("verse"), item.get("text", ""))
            for item in data.get("verses") or []
            if isinstance(item, dict) and item.get("chapter", reference.chapter) == reference.chapter
        )
        chapter = ChapterResult(
            book=reference.book,
            chapter=reference.chapter,
            translation_code=code.upper(),
            translation_name=self._translation_name(code),
            verses=verses,
            source_tag=str(self.namespace),
            language="en",
        )
        return ProviderResult.success(self.namespace, chapter)

    def fetch_passage(self, reference_text: str, translation_code: str = "kjv", timeout=None) -> Optional[dict]:
        """
        Fetch a free-form passage ("John 3:16", "Romans 8:28-30").

        Returns:
            {"reference": "John 3:16", "text": "For God so loved...",
             "translation": "KJV"} or None on any failure
        """
        code = self.normalize_code(translation_code)
        data, reason = self._get_passage(reference_text, code, timeout=timeout)
        if not isinstance(data, dict):
            logger.debug(f"bible-api.com passage {reference_text!r} failed: {reason}")
            return None

        text = collapse_whitespace(data.get("text") or "")
        if not text:
            return None
        return {
            "reference": data.get("reference") or reference_text,
            "text": text,
            "translation": code.upper(),
        }
