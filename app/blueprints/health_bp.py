"""
Health check blueprint.

Endpoints:
    GET /api/v1/health        - liveness with database check
    GET /api/v1/health/ready  - simple 200 for load balancers
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from app.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe - always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("", methods=["GET"])
def live():
    """Liveness check with database round-trip."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except Exception as exc:
        db.session.rollback()
        checks["database"] = {"status": "error"}
        overall = False
        logger.error("Health check - database failed: %s", exc)

    body = {
        "status": "ok" if overall else "degraded",
        "app": current_app.config.get("APP_NAME", "onboarding-crm"),
        "checks": checks,
    }
    return jsonify(body), 200 if overall else 503
