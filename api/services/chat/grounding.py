# api/services/chat/grounding.py
"""
Verse grounding for chat.

Verse references in the user's message are looked up on bible-api.com
(KJV) so the model can quote the actual text instead of recalling it.
Lookups run in parallel under one aggregate deadline; whatever has not
finished by then is dropped. Failures never reach the caller.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional

from services.bible.providers import BibleApiComProvider
from services.bible.reference_parser import find_references

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "ACCURATE BIBLE TEXT (KJV from bible-api.com):"
CONTEXT_FOOTER = "Use this exact text when quoting."

_provider = None


def _get_provider() -> BibleApiComProvider:
    global _provider
    if _provider is None:
        _provider = BibleApiComProvider()
    return _provider


def extract_verse_references(text: str, limit: Optional[int] = None) -> List[str]:
    """
    Verse references in the message, in canonical form ("Ps 23:1" -> "Psalms 23:1"),
    in order of first appearance and without repeats. Names that are not
    books of the canon are ignored.
    """
    return [ref.normalized for ref in find_references(text, limit=limit)]


def fetch_kjv_line(reference: str, timeout: Optional[float] = None) -> Optional[str]:
    """One grounding line: 'John 3:16: "For God so loved..."'."""
    passage = _get_provider().fetch_passage(reference, "kjv", timeout=timeout)
    if not passage:
        return None
    return f'{passage["reference"]}: "{passage["text"]}"'


def _safe_fetch(fetch: Callable[[str], Optional[str]], reference: str) -> Optional[str]:
    try:
        return fetch(reference)
    except Exception as e:
        logger.debug(f"Grounding lookup for {reference!r} failed: {e}")
        return None


def fetch_grounding_context(
    text: str,
    fetch: Optional[Callable[[str], Optional[str]]] = None,
    timeout: float = 3.0,
    max_refs: int = 3,
) -> str:
    """
    Build the grounding block for a user message.

    Args:
        text: the user's latest message
        fetch: reference -> line or None (defaults to a bible-api.com KJV lookup)
        timeout: aggregate deadline for all lookups, in seconds
        max_refs: at most this many references are looked up

    Returns:
        The context block, or "" if nothing was found in time.
    """
    references = extract_verse_references(text, limit=max_refs)
    if not references:
        return ""

    if fetch is None:
        def fetch(reference):
            return fetch_kjv_line(reference, timeout=timeout)

    executor = ThreadPoolExecutor(max_workers=len(references))
    try:
        futures = [executor.submit(_safe_fetch, fetch, ref) for ref in references]
        done, not_done = wait(futures, timeout=timeout)
    finally:
        # Stragglers keep running in the background; their results are discarded
        executor.shutdown(wait=False)

    if not_done:
        logger.debug(f"Grounding deadline hit with {len(not_done)} lookups outstanding")

    lines = [f.result() for f in futures if f in done and f.result()]
    if not lines:
        return ""

    return f"{CONTEXT_HEADER}\n" + "\n".join(lines) + f"\n\n{CONTEXT_FOOTER}"
