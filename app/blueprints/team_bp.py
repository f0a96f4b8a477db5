"""
Team Blueprint: staff account administration (SUPER_ADMIN only).

Endpoints:
    GET    /api/v1/admin/team        - List staff
    POST   /api/v1/admin/team        - Create team member
    PUT    /api/v1/admin/team/<id>   - Update (name, email, password, role, isActive, clientId)
    DELETE /api/v1/admin/team/<id>   - Delete

The role guard runs on every route; the service repeats it together with
the protected-account rules.
"""

from flask import Blueprint, jsonify, request

from app import limiter
from app.middleware.permission_required import current_user, require_role
from app.middleware.rate_limiter import CREATE_USER_LIMIT
from app.models.auth import ROLE_SUPER_ADMIN
from app.services import team_service

team_bp = Blueprint("team", __name__, url_prefix="/api/v1/admin/team")

_create_user_limit = limiter.shared_limit(CREATE_USER_LIMIT, scope="create_user")


@team_bp.route("", methods=["GET"])
@require_role(ROLE_SUPER_ADMIN)
def list_team():
    return jsonify(team_service.list_team(current_user())), 200


@team_bp.route("", methods=["POST"])
@_create_user_limit
@require_role(ROLE_SUPER_ADMIN)
def create_member():
    data = request.get_json(silent=True) or {}
    return jsonify(team_service.create_team_member(data, current_user())), 201


@team_bp.route("/<int:user_id>", methods=["PUT"])
@require_role(ROLE_SUPER_ADMIN)
def update_member(user_id):
    data = request.get_json(silent=True) or {}
    return jsonify(team_service.update_team_member(user_id, data, current_user())), 200


@team_bp.route("/<int:user_id>", methods=["DELETE"])
@require_role(ROLE_SUPER_ADMIN)
def delete_member(user_id):
    team_service.delete_team_member(user_id, current_user())
    return jsonify({"message": "Team member deleted"}), 200
