# api/utils/errors.py
"""
JSON error envelope shared by the bible and chat blueprints.

Every failure body is {"error": "<snake_case_code>", "detail": "..."}.
Chat failures also carry "retryable" so clients know whether resending the
same messages can help.
"""

from flask import jsonify
from typing import Optional


def error_response(
    code: str,
    status: int = 400,
    detail: Optional[str] = None,
    **extra
):
    """
    Build a (response, status) pair for a Flask view.

    Args:
        code: Machine-readable error code
        status: HTTP status code
        detail: Human-readable explanation, omitted when empty
        **extra: Additional top-level fields (e.g. retryable)
    """
    payload = {"error": code}
    if detail:
        payload["detail"] = detail
    payload.update(extra)
    return jsonify(payload), status


# 400
def missing_field(field: str):
    """A required query parameter or body field was not sent."""
    return error_response(f"{field}_required", 400, f"Missing required field: {field}")


# 404
def not_found(resource: str = "resource", detail: str = None):
    """Nothing upstream could serve the requested content."""
    return error_response("not_found", 404, detail or f"{resource} not found")


# 429
def rate_limited(detail: str = None, retryable: bool = True):
    """Every usable chat backend is throttling us."""
    return error_response("rate_limited", 429, detail, retryable=retryable)


# 500
def server_error(code: str = "internal_error", detail: str = None):
    return error_response(code, 500, detail)


# 503
def service_unavailable(code: str = "service_unavailable", detail: str = None, retryable: bool = False):
    """A chat backend is missing, misconfigured, or down."""
    return error_response(code, 503, detail, retryable=retryable)
