"""
Milestone Blueprint: payment milestone state changes.

Endpoints:
    PATCH /api/v1/milestones/<id>          - Mark eligible / not eligible
    POST  /api/v1/milestones/<id>/release  - Release payment (SUPER_ADMIN)
"""

from flask import Blueprint, jsonify, request

from app.middleware.permission_required import current_user, login_required
from app.services import payment_release

milestone_bp = Blueprint("milestones", __name__, url_prefix="/api/v1/milestones")


@milestone_bp.route("/<int:milestone_id>", methods=["PATCH"])
@login_required
def mark_eligible(milestone_id):
    """Body: { "eligible": true }"""
    data = request.get_json(silent=True) or {}
    milestone = payment_release.mark_milestone_eligible(
        milestone_id, data.get("eligible"), current_user(),
    )
    return jsonify(milestone), 200


@milestone_bp.route("/<int:milestone_id>/release", methods=["POST"])
@login_required
def release(milestone_id):
    return jsonify(payment_release.release_payment(milestone_id, current_user())), 200
