"""Client portal: read-only overview for the caller's linked client."""

from flask import Blueprint, jsonify

from app.middleware.permission_required import current_user, login_required
from app.services.portal_service import get_portal_overview

portal_bp = Blueprint("portal", __name__, url_prefix="/api/v1/portal")


@portal_bp.route("/overview", methods=["GET"])
@login_required
def overview():
    return jsonify(get_portal_overview(current_user())), 200
