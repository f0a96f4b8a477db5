"""
Auth Blueprint: JWT authentication endpoints.

Endpoints:
  POST /api/v1/auth/login            - Email + password → access token
  GET  /api/v1/auth/me               - Current user profile
  POST /api/v1/auth/change-password  - Change own password
"""

import logging

from flask import Blueprint, jsonify, request

from app import limiter
from app.middleware.permission_required import current_user, login_required
from app.middleware.rate_limiter import LOGIN_LIMIT, PASSWORD_CHANGE_LIMIT
from app.services.jwt_service import token_response
from app.services.team_service import authenticate_user, change_own_password

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")

_login_limit = limiter.shared_limit(LOGIN_LIMIT, scope="auth_login")
_password_limit = limiter.shared_limit(PASSWORD_CHANGE_LIMIT, scope="auth_password")


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
@_login_limit
def login():
    """
    Authenticate with email + password, return a bearer token.

    Body: { "email": "...", "password": "..." }
    """
    data = request.get_json(silent=True) or {}
    user = authenticate_user(data.get("email", ""), data.get("password", ""))
    logger.info("Login user=%s role=%s", user.id, user.role)
    return jsonify(token_response(user)), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify(current_user().to_dict()), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/change-password
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/change-password", methods=["POST"])
@_password_limit
@login_required
def change_password():
    """Body: { "currentPassword": "...", "newPassword": "..." }"""
    data = request.get_json(silent=True) or {}
    change_own_password(current_user(), data.get("currentPassword"), data.get("newPassword"))
    return jsonify({"message": "Password updated"}), 200
