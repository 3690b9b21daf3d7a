# api/services/bible/models.py
"""
Canonical data shapes every provider adapter produces.
"""

from dataclasses import dataclass
from typing import Optional

from .canon import testament_of


@dataclass(frozen=True)
class CanonicalVerse:
    """One verse of plain text. ``text`` is never empty."""
    number: int
    text: str

    def to_dict(self) -> dict:
        return {"verse": self.number, "text": self.text}


@dataclass
class ChapterResult:
    """
    A chapter (or verse range) of one translation, as served by one provider.

    Attributes:
        book: Canonical book name
        chapter: Chapter number
        translation_code: Abbreviation shown to users (e.g., "KJV", "LSG")
        translation_name: Full translation name
        verses: Ascending, de-duplicated CanonicalVerse list
        source_tag: Which provider satisfied the request
        language: Language code of the text
    """
    book: str
    chapter: int
    translation_code: str
    translation_name: str
    verses: list[CanonicalVerse]
    source_tag: str
    language: str = "en"

    @property
    def is_empty(self) -> bool:
        return not self.verses

    def verse_range(self, start: Optional[int], end: Optional[int] = None) -> list[CanonicalVerse]:
        """Verses within [start, end]; the whole chapter when start is None."""
        if start is None:
            return list(self.verses)
        end = end or start
        return [v for v in self.verses if start <= v.number <= end]

    def to_dict(self, target_language: Optional[str] = None) -> dict:
        """Convert to the chapter-fetch JSON shape."""
        return {
            "book": self.book,
            "chapter": self.chapter,
            "translation": self.translation_code,
            "translationName": self.translation_name,
            "verses": [v.to_dict() for v in self.verses],
            "isNativeTranslation": self.language == (target_language or self.language),
            "language": self.language,
            "source": self.source_tag,
        }


@dataclass(frozen=True)
class SearchHit:
    """A single verse matched by a search."""
    book: str
    chapter: int
    verse: int
    text: str

    @property
    def testament(self) -> str:
        return testament_of(self.book)

    def to_dict(self) -> dict:
        return {
            "book": self.book,
            "chapter": self.chapter,
            "verse": self.verse,
            "text": self.text,
            "testament": self.testament,
        }
