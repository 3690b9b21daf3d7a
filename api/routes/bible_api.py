# routes/bible_api.py
"""
API endpoints for scripture content.

Provides access to:
- Chapter text with provider fallback
- Verse and passage lookup
- Keyword and reference search
- Per-language translation lists
- Verse of the day
- Provider health
"""

import logging

from flask import Blueprint, jsonify, request

from core.config import get_settings
from services.bible import (
    ContentNotFoundError,
    FallbackOrchestrator,
    ProviderNamespace,
    ReferenceParseError,
    SearchAggregator,
    build_providers,
    get_registry,
    verse_of_the_day_reference,
)
from services.cache import get_chapter_cache
from utils.errors import error_response, missing_field, not_found, server_error

logger = logging.getLogger(__name__)

bible_bp = Blueprint("bible_api", __name__, url_prefix="/api/bible")

HEALTH_KEYS = {
    ProviderNamespace.GETBIBLE: "getBible",
    ProviderNamespace.BIBLE_API: "bibleApi",
    ProviderNamespace.BIBLE_ORG: "bibleOrg",
    ProviderNamespace.BOLLS: "bolls",
    ProviderNamespace.API_BIBLE: "apiBible",
}

# Lazily initialized service instances
_orchestrator = None
_search = None


def get_orchestrator() -> FallbackOrchestrator:
    """Get or create FallbackOrchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        registry = get_registry()
        _orchestrator = FallbackOrchestrator(
            registry,
            build_providers(settings, registry),
            cache=get_chapter_cache(settings),
            settings=settings,
        )
    return _orchestrator


def get_search() -> SearchAggregator:
    """Get or create SearchAggregator instance."""
    global _search
    if _search is None:
        _search = SearchAggregator(get_orchestrator())
    return _search


def _language() -> str:
    return request.args.get("lang") or get_settings().default_language


def _translation_id():
    return request.args.get("bibleId") or request.args.get("translation")


def reference_from_segments(path: str) -> str:
    """
    Rebuild a reference from URL path segments.

        John/3/16      -> "John 3:16"
        1 John/4/7-9   -> "1 John 4:7-9"
        1/John/4/7     -> "1 John 4:7"
        Romans/8       -> "Romans 8"
        John 3:16      -> "John 3:16"
    """
    segments = [s for s in path.split("/") if s.strip()]
    if len(segments) >= 3:
        book = " ".join(segments[:-2])
        return f"{book} {segments[-2]}:{segments[-1]}"
    if len(segments) == 2:
        return f"{segments[0]} {segments[1]}"
    return segments[0] if segments else ""


# =============================================================================
# Content Endpoints
# =============================================================================

@bible_bp.get("/chapter/<book>/<chapter>")
def get_chapter(book, chapter):
    """
    Fetch a whole chapter.

    Query params:
        translation: Registry translation id, e.g. "bolls:KJV" (optional)
        bibleId: Same as translation; wins when both are given
        lang: Target language (optional, default from settings)

    Returns:
        {
            "book": "John",
            "chapter": 3,
            "translation": "KJV",
            "translationName": "King James Version",
            "verses": [{"verse": 1, "text": "..."}],
            "isNativeTranslation": true,
            "language": "en",
            "source": "bolls"
        }
    """
    language = _language()
    try:
        result = get_orchestrator().get_chapter(book, chapter, _translation_id(), language)
        return jsonify(result.to_dict(language))
    except ReferenceParseError as e:
        return error_response("invalid_reference", 400, str(e))
    except ContentNotFoundError as e:
        return not_found("chapter", str(e))
    except Exception as e:
        logger.exception(f"Chapter lookup failed for {book} {chapter}")
        return server_error("chapter_lookup_failed", str(e))


@bible_bp.get("/verse/<path:reference>")
def get_verse(reference):
    """
    Fetch verses.

    Accepts Book/Chapter/Verse[-End], Book/Chapter, or one encoded
    reference such as "John%203:16".

    Returns:
        {"verses": [{"book", "chapter", "verse", "text", "translation"}]}
    """
    raw = reference_from_segments(reference)
    if not raw:
        return missing_field("reference")

    try:
        verses = get_orchestrator().resolve_verses(raw, _translation_id(), _language())
        return jsonify({"verses": verses})
    except ReferenceParseError as e:
        return error_response("invalid_reference", 400, str(e))
    except Exception as e:
        logger.exception(f"Verse lookup failed for {raw!r}")
        return server_error("verse_lookup_failed", str(e))


@bible_bp.get("/search")
def search():
    """
    Search scripture.

    Query params:
        q: Keyword or reference (required)
        filter: "all", "ot", "nt" or a book name (optional, default "all")
        lang, translation: as for /chapter
        limit: Max results (optional, default 20)
    """
    query = (request.args.get("q") or "").strip()
    if not query:
        return missing_field("q")

    filter_value = request.args.get("filter") or "all"
    try:
        limit = max(1, min(int(request.args.get("limit", 20)), 100))
    except ValueError:
        limit = 20

    try:
        result = get_search().search(
            query,
            translation_id=_translation_id(),
            filter=filter_value,
            language=_language(),
            limit=limit,
        )
        return jsonify(result.to_dict(filter_value))
    except ValueError as e:
        return error_response("invalid_query", 400, str(e))
    except Exception as e:
        logger.exception(f"Search failed for {query!r}")
        return server_error("search_failed", str(e))


@bible_bp.get("/translations")
def list_translations():
    """
    Translations offered for a language.

    Returns:
        {"language": "es", "default": "bolls:RV1960", "translations": [...]}
    """
    language = _language()
    registry = get_registry()
    descriptors = registry.list_translations(language)
    return jsonify({
        "language": language if registry.is_supported_locale(language) else registry.default_locale,
        "default": descriptors[0].translation_id,
        "translations": [d.to_dict() for d in descriptors],
    })


@bible_bp.get("/verse-of-the-day")
def verse_of_the_day():
    """Today's verse from the curated list, resolved through the fallback chain."""
    reference = verse_of_the_day_reference()
    try:
        verses = get_orchestrator().resolve_verses(reference, _translation_id(), _language())
    except Exception as e:
        logger.exception(f"Verse of the day lookup failed for {reference}")
        return server_error("verse_lookup_failed", str(e))

    if not verses:
        return not_found("verse", f"No provider could serve {reference}")
    return jsonify({
        "reference": reference,
        "text": " ".join(v["text"] for v in verses),
        "translation": verses[0]["translation"],
        "verses": verses,
    })


@bible_bp.get("/books/<translation>")
def list_books(translation):
    """
    Books in a Bolls.life translation.

    Returns:
        {"translation": "KJV", "books": [{"bookId", "name", "chapters", "canonicalName"}]}
    """
    provider = get_orchestrator().providers.get(ProviderNamespace.BOLLS)
    books = provider.fetch_books(translation) if provider else None
    if books is None:
        return not_found("translation", f"No book list for {translation}")
    return jsonify({"translation": translation, "books": books})


@bible_bp.get("/health")
def health():
    """Provider availability. Always 200; each flag reports one provider."""
    status = get_orchestrator().health()
    return jsonify({
        key: bool(status.get(namespace, False))
        for namespace, key in HEALTH_KEYS.items()
    })
