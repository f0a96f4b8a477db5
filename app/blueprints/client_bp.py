"""
Client Blueprint: onboarding workflow API.

Endpoints:
    GET    /api/v1/clients                                   - List (scoped, filtered, paginated)
    POST   /api/v1/clients                                   - Create (intake step)
    GET    /api/v1/clients/<id>                              - Full client view
    DELETE /api/v1/clients/<id>                              - Delete (SUPER_ADMIN)
    PUT    /api/v1/clients/<id>/steps/<step>                 - Save one workflow step
    POST   /api/v1/clients/<id>/submit                       - Mark application submitted
    PATCH  /api/v1/clients/<id>/assign                       - Reassign owner (SUPER_ADMIN)
    GET    /api/v1/clients/<id>/dependencies                 - Per-stage dependency report
    GET    /api/v1/clients/<id>/audit                        - Audit trail
    POST   /api/v1/clients/<id>/tasks                        - Create formal task
    GET    /api/v1/clients/<id>/tasks/progress               - Task progress summary
    PATCH  /api/v1/clients/<id>/tasks/<kind>/<task_id>       - Task status transition
    PATCH  /api/v1/clients/<id>/submission                   - Store review status transition
    POST   /api/v1/clients/<id>/submission/rejection         - Record store rejection
    GET    /api/v1/clients/<id>/milestones                   - Eligibility + milestones
    POST   /api/v1/clients/<id>/milestones                   - Create milestone
    GET    /api/v1/clients/<id>/timeline-extension           - Client-caused delay days
"""

from flask import Blueprint, jsonify, request

from app.middleware.permission_required import current_user, login_required
from app.services import client_service, payment_release, task_service

client_bp = Blueprint("clients", __name__, url_prefix="/api/v1/clients")


def _body() -> dict:
    return request.get_json(silent=True) or {}


# ── Collection ───────────────────────────────────────────────────────────


@client_bp.route("", methods=["GET"])
@login_required
def list_clients():
    """Query: page, limit, status (ALL|ONGOING|COMPLETED|BLOCKED), search."""
    result = client_service.list_clients(
        current_user(),
        page=request.args.get("page"),
        limit=request.args.get("limit"),
        status=request.args.get("status", "ALL"),
        search=request.args.get("search"),
    )
    return jsonify(result), 200


@client_bp.route("", methods=["POST"])
@login_required
def create_client():
    return jsonify(client_service.create_client(_body(), current_user())), 201


# ── Single client ────────────────────────────────────────────────────────


@client_bp.route("/<int:client_id>", methods=["GET"])
@login_required
def get_client(client_id):
    return jsonify(client_service.get_client_view(client_id, current_user())), 200


@client_bp.route("/<int:client_id>", methods=["DELETE"])
@login_required
def delete_client(client_id):
    client_service.delete_client(client_id, current_user())
    return jsonify({"message": "Client deleted"}), 200


@client_bp.route("/<int:client_id>/steps/<step>", methods=["PUT"])
@login_required
def update_step(client_id, step):
    view = client_service.update_step(client_id, step, _body(), current_user())
    return jsonify(view), 200


@client_bp.route("/<int:client_id>/submit", methods=["POST"])
@login_required
def submit_application(client_id):
    return jsonify(client_service.submit_application(client_id, current_user())), 200


@client_bp.route("/<int:client_id>/assign", methods=["PATCH"])
@login_required
def assign_client(client_id):
    """Body: { "assignedToId": <user id> | null }"""
    data = _body()
    result = client_service.assign_client(client_id, data.get("assignedToId"), current_user())
    return jsonify(result), 200


@client_bp.route("/<int:client_id>/dependencies", methods=["GET"])
@login_required
def dependencies(client_id):
    return jsonify(client_service.get_dependency_report(client_id, current_user())), 200


@client_bp.route("/<int:client_id>/audit", methods=["GET"])
@login_required
def audit_trail(client_id):
    return jsonify(client_service.get_audit_trail(client_id, current_user())), 200


# ── Formal tasks ─────────────────────────────────────────────────────────


@client_bp.route("/<int:client_id>/tasks", methods=["POST"])
@login_required
def create_task(client_id):
    """Body: { "kind": "website|app_development|store_asset", "name": "...", "assetUrl": ... }"""
    return jsonify(task_service.create_task(client_id, _body(), current_user())), 201


@client_bp.route("/<int:client_id>/tasks/progress", methods=["GET"])
@login_required
def task_progress(client_id):
    return jsonify(task_service.task_progress(client_id, current_user())), 200


@client_bp.route("/<int:client_id>/tasks/<kind>/<int:task_id>", methods=["PATCH"])
@login_required
def update_task_status(client_id, kind, task_id):
    """Body: { "status": "...", "reason": "..." }"""
    task = task_service.update_task_status(client_id, kind, task_id, _body(), current_user())
    return jsonify(task), 200


@client_bp.route("/<int:client_id>/submission", methods=["PATCH"])
@login_required
def update_submission_status(client_id):
    """Body: { "status": "...", "reason": "..." }"""
    review = task_service.update_review_status(client_id, _body(), current_user())
    return jsonify(review), 200


@client_bp.route("/<int:client_id>/submission/rejection", methods=["POST"])
@login_required
def submission_rejection(client_id):
    """Body: { "reason": "<store rejection text>" }"""
    result = task_service.record_submission_rejection(
        client_id, _body().get("reason"), current_user(),
    )
    return jsonify(result), 200


# ── Payments ─────────────────────────────────────────────────────────────


@client_bp.route("/<int:client_id>/milestones", methods=["GET"])
@login_required
def list_milestones(client_id):
    return jsonify(payment_release.get_payment_overview(client_id, current_user())), 200


@client_bp.route("/<int:client_id>/milestones", methods=["POST"])
@login_required
def create_milestone(client_id):
    """Body: { "name": "...", "amount": 1000, "eligible": false }"""
    return jsonify(payment_release.create_milestone(client_id, _body(), current_user())), 201


@client_bp.route("/<int:client_id>/timeline-extension", methods=["GET"])
@login_required
def timeline_extension(client_id):
    return jsonify(payment_release.get_timeline_extension(client_id, current_user())), 200
