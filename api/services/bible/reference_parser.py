# api/services/bible/reference_parser.py
"""
Scripture reference parser and provider book-id tables.

Handles the reference shapes callers send:
- "Book Chapter": "Genesis 1", "Psalm 23"
- "Book Chapter:Verse": "John 3:16"
- "Book Chapter:Start-End": "1 John 4:7-8"

Book names may be full names, common abbreviations ("Gen", "Ps.", "Jn"),
or numbered books written several ways ("1 John", "1John", "I John").
Every accepted reference resolves to one of the 66 canonical names.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from .canon import (
    CANON,
    BOOK_NUMBERS,
    CHAPTER_COUNTS,
    SINGLE_CHAPTER_VERSE_COUNTS,
    is_single_chapter_book,
    testament_of,
)
from .namespaces import ProviderNamespace


class ReferenceParseError(ValueError):
    """Raised when input cannot be turned into a canonical reference."""
    pass


@dataclass(frozen=True)
class ScriptureReference:
    """
    A canonical scripture reference.

    Attributes:
        book: Canonical book name (e.g., "Genesis", "1 John")
        chapter: Chapter number (>= 1)
        verse_start: First verse, None for a whole chapter
        verse_end: Last verse of a range, None for a single verse
    """
    book: str
    chapter: int
    verse_start: Optional[int] = None
    verse_end: Optional[int] = None

    def __post_init__(self):
        if self.book not in BOOK_NUMBERS:
            raise ReferenceParseError(f"Unknown book: {self.book}")
        if self.chapter < 1:
            raise ReferenceParseError(f"Chapter must be >= 1, got {self.chapter}")
        if self.verse_start is not None and self.verse_start < 1:
            raise ReferenceParseError(f"Verse must be >= 1, got {self.verse_start}")
        if self.verse_end is not None:
            if self.verse_start is None:
                raise ReferenceParseError("Verse range needs a starting verse")
            if self.verse_end < self.verse_start:
                raise ReferenceParseError(
                    f"Verse range end {self.verse_end} precedes start {self.verse_start}"
                )

    @property
    def is_chapter(self) -> bool:
        return self.verse_start is None

    @property
    def testament(self) -> str:
        return testament_of(self.book)

    @property
    def normalized(self) -> str:
        """Return normalized reference string."""
        return format_reference(self.book, self.chapter, self.verse_start, self.verse_end)

    def contains_verse(self, verse: int) -> bool:
        """True if ``verse`` falls inside this reference's verse range."""
        if self.verse_start is None:
            return True
        end = self.verse_end or self.verse_start
        return self.verse_start <= verse <= end

    def __str__(self) -> str:
        return self.normalized


# Extra aliases per canonical book (the lowercased canonical name is always
# accepted). Numbered books are expanded below from their stems.
_ALIASES = {
    "Genesis": ("gen", "gn", "ge"),
    "Exodus": ("exod", "exo", "ex"),
    "Leviticus": ("lev", "lv", "le"),
    "Numbers": ("num", "nm", "nu"),
    "Deuteronomy": ("deut", "deu", "dt"),
    "Joshua": ("josh", "jos"),
    "Judges": ("judg", "jdg", "jg"),
    "Ruth": ("ru", "rth"),
    "Ezra": ("ezr",),
    "Nehemiah": ("neh", "ne"),
    "Esther": ("esth", "est", "es"),
    "Job": ("jb",),
    "Psalms": ("psalm", "ps", "psa", "pss"),
    "Proverbs": ("prov", "pro", "prv", "pr"),
    "Ecclesiastes": ("eccl", "ecc", "ec", "qoh", "qoheleth"),
    "Song of Solomon": ("song", "song of songs", "songs", "sos", "ss", "canticles", "cant", "sg"),
    "Isaiah": ("isa", "is"),
    "Jeremiah": ("jer", "je"),
    "Lamentations": ("lam", "la"),
    "Ezekiel": ("ezek", "eze", "ez"),
    "Daniel": ("dan", "dn", "da"),
    "Hosea": ("hos", "ho"),
    "Joel": ("jl", "joe"),
    "Amos": ("am",),
    "Obadiah": ("obad", "oba", "ob"),
    "Jonah": ("jon", "jnh"),
    "Micah": ("mic", "mi"),
    "Nahum": ("nah", "na"),
    "Habakkuk": ("hab", "hb"),
    "Zephaniah": ("zeph", "zep"),
    "Haggai": ("hag", "hg"),
    "Zechariah": ("zech", "zec", "zc"),
    "Malachi": ("mal", "ml"),
    "Matthew": ("matt", "mat", "mt"),
    "Mark": ("mrk", "mk", "mr"),
    "Luke": ("luk", "lk", "lu"),
    "John": ("jn", "joh", "jhn"),
    "Acts": ("act", "ac"),
    "Romans": ("rom", "ro", "rm"),
    "Galatians": ("gal", "ga"),
    "Ephesians": ("eph", "ep"),
    "Philippians": ("phil", "php", "pp"),
    "Colossians": ("col", "co"),
    "Titus": ("tit",),
    "Philemon": ("philem", "phlm", "phm", "pm"),
    "Hebrews": ("heb", "he"),
    "James": ("jas", "jm", "ja"),
    "Jude": ("jud", "jd"),
    "Revelation": ("rev", "re", "rv", "apoc", "apocalypse", "revelations"),
}

_NUMBERED_STEMS = {
    "Samuel": ("sam", "sa", "sm"),
    "Kings": ("kgs", "ki", "kin"),
    "Chronicles": ("chr", "chron", "ch"),
    "Corinthians": ("cor", "co"),
    "Thessalonians": ("thess", "thes", "th"),
    "Timothy": ("tim", "ti"),
    "Peter": ("pet", "pe", "pt"),
    "John": ("jn", "jo", "joh", "jhn"),
}

_ROMAN = {"1": "i", "2": "ii", "3": "iii"}


def _build_book_names() -> dict:
    names = {book.lower(): book for book in CANON}
    for book, aliases in _ALIASES.items():
        for alias in aliases:
            names[alias] = book

    for book in CANON:
        number, _, stem = book.partition(" ")
        if number not in _ROMAN or stem not in _NUMBERED_STEMS:
            continue
        for word in (stem.lower(),) + _NUMBERED_STEMS[stem]:
            names.setdefault(f"{number} {word}", book)
            names.setdefault(f"{number}{word}", book)
            # Roman numerals only with a space: "i sa" is fine, "isa" is Isaiah
            names.setdefault(f"{_ROMAN[number]} {word}", book)
    return names


# Lowercased alias -> canonical book name
BOOK_NAMES = _build_book_names()

_CANON_LOWER = {book.lower(): book for book in CANON}

_REFERENCE_RE = re.compile(
    r"^(?P<book>.+?)\.?\s+(?P<chapter>\d+)"
    r"(?::(?P<start>\d+)(?:\s*[-–—]\s*(?P<end>\d+))?)?$"
)

# Verse references embedded in free text ("Read John 3:16 and 1 Cor 13:4-7")
_EMBEDDED_RE = re.compile(
    r"\b((?:[123]|I{1,3})?\s?[A-Za-z]+(?:\s+of\s+[A-Za-z]+)?)\.?\s+"
    r"(\d+):(\d+)(?:\s*[-–—]\s*(\d+))?"
)


def normalize_book_name(name: str) -> Optional[str]:
    """
    Normalize a book name or abbreviation to its canonical form.

    Returns:
        Canonical book name (e.g., "Genesis", "1 John") or None if unknown
    """
    if not name:
        return None
    key = re.sub(r"\s+", " ", name.lower().replace(".", "")).strip()
    if key in BOOK_NAMES:
        return BOOK_NAMES[key]
    return BOOK_NAMES.get(key.replace(" ", ""))


def parse_reference(raw: str) -> ScriptureReference:
    """
    Parse a scripture reference string.

    Args:
        raw: Reference like "John 3:16", "1 John 4:7-8" or "Genesis 1"

    Returns:
        ScriptureReference

    Raises:
        ReferenceParseError: bad book name, non-numeric chapter, or a
            chapter past the end of the book
    """
    if not raw or not raw.strip():
        raise ReferenceParseError("Empty reference")

    text = re.sub(r"\s+", " ", raw.strip())
    match = _REFERENCE_RE.match(text)
    if not match:
        raise ReferenceParseError(f"Could not parse reference: {raw}")

    book = normalize_book_name(match.group("book"))
    if not book:
        raise ReferenceParseError(f"Unknown book in reference: {raw}")

    chapter = int(match.group("chapter"))
    if chapter > CHAPTER_COUNTS[book]:
        raise ReferenceParseError(
            f"{book} has {CHAPTER_COUNTS[book]} chapters, got {chapter}"
        )

    start = match.group("start")
    end = match.group("end")
    return ScriptureReference(
        book=book,
        chapter=chapter,
        verse_start=int(start) if start else None,
        verse_end=int(end) if end else None,
    )


def is_valid_reference(raw: str) -> bool:
    """Check if a string parses as a scripture reference."""
    try:
        parse_reference(raw)
        return True
    except ReferenceParseError:
        return False


def find_references(text: str, limit: Optional[int] = None) -> list[ScriptureReference]:
    """
    Find verse references in a block of text.

    Matches that don't resolve to a known book are skipped. Results are
    de-duplicated and keep their order of appearance.
    """
    refs = []
    seen = set()
    for match in _EMBEDDED_RE.finditer(text or ""):
        name = match.group(1)
        book = normalize_book_name(name) or normalize_book_name(name.split()[-1])
        if not book:
            continue
        try:
            ref = ScriptureReference(
                book=book,
                chapter=int(match.group(2)),
                verse_start=int(match.group(3)),
                verse_end=int(match.group(4)) if match.group(4) else None,
            )
        except ReferenceParseError:
            continue
        if ref.normalized in seen:
            continue
        seen.add(ref.normalized)
        refs.append(ref)
        if limit is not None and len(refs) >= limit:
            break
    return refs


def format_reference(
    book: str,
    chapter: int,
    verse_start: Optional[int] = None,
    verse_end: Optional[int] = None,
) -> str:
    """Format a reference for display: "John 3", "John 3:16", "John 3:16-18"."""
    ref = f"{book} {chapter}"
    if verse_start:
        ref += f":{verse_start}"
        if verse_end and verse_end != verse_start:
            ref += f"-{verse_end}"
    return ref


def expand_single_chapter(ref: ScriptureReference) -> ScriptureReference:
    """
    Turn a bare chapter reference to a single-chapter book into an explicit
    verse range ("Jude 1" -> "Jude 1:1-25").
    """
    if is_single_chapter_book(ref.book) and ref.chapter == 1 and ref.is_chapter:
        return ScriptureReference(ref.book, 1, 1, SINGLE_CHAPTER_VERSE_COUNTS[ref.book])
    return ref


# -----------------------------------------------------------------------------
# Provider book-id tables
# -----------------------------------------------------------------------------

# API.Bible uses USFM book codes
USFM_CODES = {
    "Genesis": "GEN", "Exodus": "EXO", "Leviticus": "LEV", "Numbers": "NUM",
    "Deuteronomy": "DEU", "Joshua": "JOS", "Judges": "JDG", "Ruth": "RUT",
    "1 Samuel": "1SA", "2 Samuel": "2SA", "1 Kings": "1KI", "2 Kings": "2KI",
    "1 Chronicles": "1CH", "2 Chronicles": "2CH", "Ezra": "EZR", "Nehemiah": "NEH",
    "Esther": "EST", "Job": "JOB", "Psalms": "PSA", "Proverbs": "PRO",
    "Ecclesiastes": "ECC", "Song of Solomon": "SNG", "Isaiah": "ISA",
    "Jeremiah": "JER", "Lamentations": "LAM", "Ezekiel": "EZK", "Daniel": "DAN",
    "Hosea": "HOS", "Joel": "JOL", "Amos": "AMO", "Obadiah": "OBA", "Jonah": "JON",
    "Micah": "MIC", "Nahum": "NAM", "Habakkuk": "HAB", "Zephaniah": "ZEP",
    "Haggai": "HAG", "Zechariah": "ZEC", "Malachi": "MAL",
    "Matthew": "MAT", "Mark": "MRK", "Luke": "LUK", "John": "JHN", "Acts": "ACT",
    "Romans": "ROM", "1 Corinthians": "1CO", "2 Corinthians": "2CO",
    "Galatians": "GAL", "Ephesians": "EPH", "Philippians": "PHP",
    "Colossians": "COL", "1 Thessalonians": "1TH", "2 Thessalonians": "2TH",
    "1 Timothy": "1TI", "2 Timothy": "2TI", "Titus": "TIT", "Philemon": "PHM",
    "Hebrews": "HEB", "James": "JAS", "1 Peter": "1PE", "2 Peter": "2PE",
    "1 John": "1JN", "2 John": "2JN", "3 John": "3JN", "Jude": "JUD",
    "Revelation": "REV",
}

_BOOK_ID_TABLES = {
    ProviderNamespace.BOLLS: BOOK_NUMBERS,
    ProviderNamespace.GETBIBLE: BOOK_NUMBERS,
    ProviderNamespace.API_BIBLE: USFM_CODES,
    ProviderNamespace.BIBLE_API: {book: book for book in CANON},
    ProviderNamespace.BIBLE_ORG: {book: book for book in CANON},
}

_REVERSE_TABLES = {
    namespace: {book_id: book for book, book_id in table.items()}
    for namespace, table in _BOOK_ID_TABLES.items()
}


def get_provider_book_id(book: str, namespace: ProviderNamespace) -> Optional[Union[str, int]]:
    """
    Look up a provider's id for a canonical book name (case-insensitive).

    Returns None for unmapped names; callers treat that as "this provider
    can't serve the request" and move on.
    """
    canonical = _CANON_LOWER.get((book or "").strip().lower())
    if canonical is None:
        return None
    return _BOOK_ID_TABLES[namespace].get(canonical)


def get_book_name(book_id: Union[str, int], namespace: ProviderNamespace) -> Optional[str]:
    """Reverse lookup: provider book id -> canonical name, None if unknown."""
    table = _REVERSE_TABLES[namespace]
    if isinstance(book_id, str) and namespace is ProviderNamespace.API_BIBLE:
        book_id = book_id.upper()
    elif isinstance(book_id, str) and book_id.isdigit():
        book_id = int(book_id)
    return table.get(book_id)
