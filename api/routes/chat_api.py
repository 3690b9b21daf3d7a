# api/routes/chat_api.py
"""
API endpoints for the study chat.

Provides access to:
- Streamed completions from the first working chat backend
- The list of backends that have credentials
"""

import logging

from flask import Blueprint, Response, jsonify, request, stream_with_context

from services.chat import CompletionProviderError, get_selector
from utils.errors import error_response, rate_limited, service_unavailable

logger = logging.getLogger(__name__)

chat_bp = Blueprint("chat_api", __name__, url_prefix="/api")

BUSY_MESSAGE = "The AI service is currently busy. Please wait a moment and try again."
CONFIG_MESSAGE = "AI service configuration error. Please contact support."
UNAVAILABLE_MESSAGE = "The AI service is temporarily unavailable. Please try again."


def provider_error_response(err: CompletionProviderError):
    """Map an exhausted completion to a client-facing status."""
    if err.kind == "rate_limited":
        return rate_limited(BUSY_MESSAGE, retryable=True)
    if err.kind == "auth":
        return service_unavailable("provider_auth_failed", CONFIG_MESSAGE, retryable=False)
    if err.kind == "not_configured":
        return service_unavailable("no_provider_configured", err.message, retryable=False)
    return service_unavailable("provider_unavailable", UNAVAILABLE_MESSAGE, retryable=True)


@chat_bp.post("/chat")
def chat():
    """
    Streamed chat completion.

    Body:
        {"messages": [{"role": "user", "content": "..."}], "lang": "en"}

    Returns:
        text/plain stream; X-Chat-Provider names the backend that answered.
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return error_response("invalid_body", 400, "Request body must be a JSON object", retryable=False)

    messages = data.get("messages")
    lang = data.get("lang")
    if not isinstance(lang, str) or not lang:
        lang = "en"

    if not messages:
        return error_response("messages_required", 400, "Messages are required", retryable=False)

    try:
        stream = get_selector().complete(messages, target_language=lang)
    except ValueError as e:
        return error_response("invalid_messages", 400, str(e), retryable=False)
    except CompletionProviderError as e:
        logger.warning(f"Chat completion failed ({e.kind}) at {e.provider}: {e.message}")
        return provider_error_response(e)
    except Exception as e:
        logger.exception("Chat completion failed unexpectedly")
        return error_response("chat_failed", 500, str(e), retryable=True)

    response = Response(
        stream_with_context(iter(stream)),
        mimetype="text/plain",
    )
    response.headers["X-Chat-Provider"] = stream.provider
    response.headers["Cache-Control"] = "no-cache"
    return response


@chat_bp.get("/chat")
def chat_status():
    """Liveness plus the backends that have credentials."""
    selector = get_selector()
    return jsonify({
        "status": "ok",
        "providers": [p.name for p in selector.configured_providers()],
    })
