from flask import Blueprint, jsonify
from datetime import datetime, timezone

from core.config import get_settings

status_bp = Blueprint("status_api", __name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _check_chat() -> tuple[bool, str]:
    """Check if any chat backend has credentials."""
    try:
        from services.chat import get_selector
        names = [p.name for p in get_selector().configured_providers()]
        if names:
            return True, ", ".join(names)
        return False, "not configured"
    except Exception as e:
        return False, str(e)


def _check_cache() -> dict:
    from services.cache import get_chapter_cache
    return get_chapter_cache(get_settings()).stats()


@status_bp.get("/status")
def status():
    """Basic liveness check."""
    return jsonify(
        {
            "status": "ok",
            "time_utc": _utc_now(),
        }
    )


@status_bp.get("/health")
def health():
    """
    Component report for monitoring.

    Upstream content providers are probed separately by /api/bible/health;
    this endpoint stays local and cheap. Always 200: every component here
    is optional.
    """
    settings = get_settings()
    chat_ok, chat_detail = _check_chat()

    return jsonify({
        "status": "healthy",
        "time_utc": _utc_now(),
        "components": {
            "chat": {"ok": chat_ok, "detail": chat_detail},
            "api_bible": {
                "ok": settings.api_bible_configured,
                "detail": "configured" if settings.api_bible_configured else "no API_BIBLE_KEY",
            },
            "chapter_cache": _check_cache(),
        },
    })
