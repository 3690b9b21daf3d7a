# api/services/bible/text_cleaning.py
"""
Verse text normalization shared by all provider adapters.

Providers return verse text with assorted markup: HTML tags, <br> line
breaks, Strong's concordance numbers wrapped in <S>…</S>, and leftover
verse-number prefixes. Everything here turns that into plain text.
"""

import re
from typing import Iterable, Tuple, Union

from .models import CanonicalVerse

_STRONGS_RE = re.compile(r"<S>\s*\d+\s*</S>", re.IGNORECASE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_LEADING_MARKER_RE = re.compile(r"^\s*(?:\[\d+\]|\(\d+\)|\d+(?=\s|$))\s*")
_WHITESPACE_RE = re.compile(r"\s+")
_BRACKETED_VERSE_RE = re.compile(r"\[(\d+)\]\s*([^\[\]]*)")


def strip_strongs(text: str) -> str:
    """Remove <S>1234</S> spans. Must run before generic tag stripping."""
    return _STRONGS_RE.sub("", text)


def strip_html(text: str) -> str:
    """Convert <br> to a space, then drop every remaining tag."""
    return _TAG_RE.sub("", _BR_RE.sub(" ", text))


def strip_verse_markers(text: str) -> str:
    """Remove leading "[3]", "(3)" or bare "3" verse-number artifacts."""
    previous = None
    while previous != text:
        previous = text
        text = _LEADING_MARKER_RE.sub("", text, count=1)
    return text


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_verse_text(raw: str) -> str:
    """
    Normalize one verse of provider text to plain text.

    Order matters: Strong's spans go first, otherwise tag stripping leaves
    their digits behind.
    """
    if not raw:
        return ""
    text = strip_strongs(raw)
    text = strip_html(text)
    text = collapse_whitespace(text)
    text = strip_verse_markers(text)
    return collapse_whitespace(text)


def parse_bracketed_verses(content: str) -> list[Tuple[int, str]]:
    """
    Split "[1] In the beginning… [2] And the earth…" into (number, text)
    pairs.

    Text between two brackets belongs to the preceding number. Content
    with no brackets at all is treated as verse 1.
    """
    if not content:
        return []

    flat = collapse_whitespace(strip_html(strip_strongs(content)))
    verses = []
    for match in _BRACKETED_VERSE_RE.finditer(flat):
        text = match.group(2).strip()
        if text:
            verses.append((int(match.group(1)), text))

    if not verses and flat:
        verses.append((1, flat))
    return verses


def canonical_verses(pairs: Iterable[Tuple[Union[int, str], str]]):
    """
    Build an ordered list of CanonicalVerse from raw (number, text) pairs.

    Verses are cleaned, empty ones dropped, duplicates (same number) keep
    the first occurrence, and the result is sorted by verse number.
    """
    by_number = {}
    for number, raw_text in pairs:
        try:
            number = int(number)
        except (TypeError, ValueError):
            continue
        if number < 1 or number in by_number:
            continue
        text = clean_verse_text(raw_text or "")
        if text:
            by_number[number] = CanonicalVerse(number=number, text=text)

    return [by_number[n] for n in sorted(by_number)]
