"""
JWT Auth Middleware: parses the Bearer token and sets the caller on ``g``.

    Authorization: Bearer <token>  →  g.jwt_user_id, g.jwt_role, g.jwt_client_id

The middleware never rejects a request itself. Invalid or expired tokens
leave ``g.jwt_user_id`` unset and the route's ``login_required`` decorator
answers 401.
"""

import logging

import jwt as pyjwt
from flask import g, request

from app.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.jwt_role = None
        g.jwt_client_id = None
        g.current_user = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]

        try:
            claims = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.info("Expired token on %s", path)
            return
        except pyjwt.InvalidTokenError as exc:
            logger.warning("Invalid token on %s: %s", path, exc)
            return

        g.jwt_user_id = claims.user_id
        g.jwt_role = claims.role
        g.jwt_client_id = claims.client_id
