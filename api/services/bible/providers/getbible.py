# api/services/bible/providers/getbible.py
"""
GetBible.net v2 adapter.

Free and multilingual, so it is the first fallback for every locale.
Translation codes are GetBible's own ("kjv", "valera", "ls1910", ...).

Docs: https://getbible.net/api
"""

import logging
from typing import Optional

from ..models import ChapterResult
from ..namespaces import ProviderNamespace
from ..reference_parser import ScriptureReference, get_provider_book_id
from ..text_cleaning import canonical_verses
from ..translations import get_registry
from .base import BibleProvider, ProviderResult

logger = logging.getLogger(__name__)


class GetBibleProvider(BibleProvider):
    """Client for https://api.getbible.net/v2."""

    namespace = ProviderNamespace.GETBIBLE
    base_url = "https://api.getbible.net/v2"
    timeout = 15

    def __init__(self, registry=None, timeout: Optional[float] = None, session=None):
        super().__init__(timeout=timeout, session=session)
        self.registry = registry or get_registry()

    @property
    def health_check_code(self) -> str:
        return "kjv"

    def fetch_chapter(self, reference: ScriptureReference, translation_code: str, timeout=None) -> ProviderResult:
        book_id = get_provider_book_id(reference.book, self.namespace)
        if book_id is None:
            return ProviderResult.error(self.namespace, f"no book id for {reference.book}")

        url = f"{self.base_url}/{translation_code}/{book_id}/{reference.chapter}.json"
        data, reason = self._get_json(url, headers={"Accept": "application/json"}, timeout=timeout)
        if data is None:
            return ProviderResult.error(self.namespace, reason)
        if not isinstance(data, dict):
            return ProviderResult.error(self.namespace, "unexpected payload shape")

        verses = canonical_verses(
            (item.get("verse"), item.get("text", ""))
            for item in data.get("verses") or []
            if isinstance(item, dict)
        )

        translation = self.registry.getbible_translation_by_code(translation_code)
        chapter = ChapterResult(
            book=reference.book,
            chapter=reference.chapter,
            translation_code=translation.abbreviation if translation else translation_code.upper(),
            translation_name=translation.name if translation else data.get("translation", translation_code),
            verses=verses,
            source_tag=str(self.namespace),
            language=translation.locale if translation else "en",
        )
        return ProviderResult.success(self.namespace, chapter)
