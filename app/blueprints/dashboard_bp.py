"""
Dashboard Blueprint: financial summary.

Endpoints:
    GET /api/v1/dashboard/stats?period=30|60|all
"""

from flask import Blueprint, jsonify, request

from app.middleware.permission_required import current_user, login_required
from app.services.financial_service import get_dashboard_stats

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")


@dashboard_bp.route("/stats", methods=["GET"])
@login_required
def stats():
    period = request.args.get("period", "all")
    return jsonify(get_dashboard_stats(period, current_user())), 200
