# api/services/bible/providers/bible_org.py
"""labs.bible.org adapter. Serves the NET Bible only, English only."""

import logging
from typing import Optional

from ..models import ChapterResult
from ..namespaces import ProviderNamespace
from ..reference_parser import ScriptureReference, expand_single_chapter
from ..text_cleaning import canonical_verses
from .base import BibleProvider, ProviderResult

logger = logging.getLogger(__name__)


class BibleOrgProvider(BibleProvider):
    """Client for https://labs.bible.org/api."""

    namespace = ProviderNamespace.BIBLE_ORG
    base_url = "https://labs.bible.org/api/"

    TRANSLATION_CODE = "NET"
    TRANSLATION_NAME = "New English Translation"

    def __init__(self, timeout: Optional[float] = None, session=None):
        super().__init__(timeout=timeout, session=session)

    @property
    def health_check_code(self) -> str:
        return self.TRANSLATION_CODE

    @staticmethod
    def passage_for(reference: ScriptureReference) -> str:
        """Format as "1+john+4"; single-chapter books get a verse range."""
        ref = expand_single_chapter(ScriptureReference(reference.book, reference.chapter))
        passage = f"{ref.book.lower()} {ref.chapter}"
        if ref.verse_start:
            passage += f":{ref.verse_start}-{ref.verse_end}"
        return passage.replace(" ", "+")

    def fetch_chapter(self, reference: ScriptureReference, translation_code: str = "", timeout=None) -> ProviderResult:
        # Built by hand: requests would encode "+" as %2B
        url = f"{self.base_url}?passage={self.passage_for(reference)}&type=json"
        data, reason = self._get_json(url, timeout=timeout)
        if data is None:
            return ProviderResult.error(self.namespace, reason)
        if not isinstance(data, list):
            return ProviderResult.error(self.namespace, "unexpected payload shape")

        verses = canonical_verses(
            (item.get("verse"), item.get("text", "")) for item in data if isinstance(item, dict)
        )
        chapter = ChapterResult(
            book=reference.book,
            chapter=reference.chapter,
            translation_code=self.TRANSLATION_CODE,
            translation_name=self.TRANSLATION_NAME,
            verses=verses,
            source_tag=str(self.namespace),
            language="en",
        )
        return ProviderResult.success(self.namespace, chapter)
