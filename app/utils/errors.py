"""JSON error bodies shared by every error handler.

    {"error": "<message for the UI>", "code": "ERR_...", "details": {...}}

``details`` is omitted when empty. Validation errors carry the failing
field there: ``{"field": "pan"}``.

Usage
-----
    from app.utils.errors import api_error, E

    return api_error(E.NOT_ELIGIBLE, "Milestone is not eligible for payment")
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Error code constants, one per failure family."""

    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"      # 401
    FORBIDDEN = "ERR_FORBIDDEN"                  # 403
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"  # 422
    WRONG_PASSWORD = "ERR_WRONG_PASSWORD"        # 400
    NOT_FOUND = "ERR_NOT_FOUND"                  # 404
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"  # 409
    CONFLICT_STATE = "ERR_CONFLICT_STATE"        # 409
    NOT_ELIGIBLE = "ERR_NOT_ELIGIBLE"            # 409
    RATE_LIMITED = "ERR_RATE_LIMITED"            # 429
    DATABASE = "ERR_DATABASE"                    # 500
    INTERNAL = "ERR_INTERNAL"                    # 500


_DEFAULT_STATUS: dict[str, int] = {
    E.UNAUTHENTICATED: 401,
    E.FORBIDDEN: 403,
    E.VALIDATION_INVALID: 422,
    E.WRONG_PASSWORD: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.NOT_ELIGIBLE: 409,
    E.RATE_LIMITED: 429,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None,
              details: dict | None = None):
    """Build ``(response, status)`` for a Flask view or error handler.

    ``status`` overrides the code's default; unknown codes fall back to 400.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or _DEFAULT_STATUS.get(code, 400)
