"""
Rate limiting configuration.

Counters live in the Flask-Limiter storage named by RATELIMIT_STORAGE_URI
(Redis in production, memory:// in development), so limits hold across
workers and hosts. Each category has its own independent window, keyed by
caller IP.

Categories (per IP):
    - Login:            5/minute   (auth_bp.login)
    - Password change:  3/minute   (auth_bp.change_password)
    - User creation:    5/minute   (team_bp.create_member)
    - Mutations:        30/minute  (POST/PUT/PATCH/DELETE on client routes)

Usage:
    from app.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

from flask import request as flask_request

logger = logging.getLogger(__name__)

LOGIN_LIMIT = "5/minute"
PASSWORD_CHANGE_LIMIT = "3/minute"
CREATE_USER_LIMIT = "5/minute"
MUTATION_LIMIT = "30/minute"

MUTATION_METHODS = ["POST", "PUT", "PATCH", "DELETE"]


def client_ip() -> str:
    """Rate limit key: first X-Forwarded-For hop, else the socket address."""
    forwarded = flask_request.headers.get("X-Forwarded-For", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    """
    Apply the general mutation limit to the client-facing blueprints and
    exempt the health check. Per-route limits (login, password change,
    user creation) are declared on the routes themselves.

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    for bp_name in ("clients", "milestones"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(MUTATION_LIMIT, methods=MUTATION_METHODS)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: login=%s, password=%s, create-user=%s, mutation=%s",
        LOGIN_LIMIT, PASSWORD_CHANGE_LIMIT, CREATE_USER_LIMIT, MUTATION_LIMIT,
    )
