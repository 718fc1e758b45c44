"""
Health check blueprint.

Endpoints:
    GET /api/v1/health        — simple status
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — liveness with database check
    GET /api/v1/health/requests — recent request timing summary (?seconds=3600)
"""

import logging
import time

from flask import Blueprint, current_app, jsonify, request

from tpm_dashboard.middleware.timing import summarize_metrics
from tpm_dashboard.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({"status": "ok", "service": "tpm-dashboard"}), 200


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple liveness check — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness check; 503 when the database does not answer."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except Exception as exc:
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check — database failed: %s", exc)

    # ── App info ─────────────────────────────────────────────────────
    checks["app"] = {
        "name": "TPM Dashboard",
        "debug": current_app.debug,
        "testing": current_app.testing,
        "notifications_enabled": current_app.config.get("NOTIFICATIONS_ENABLED", True),
        "ticketing_enabled": current_app.config.get("TICKETING_ENABLED", True),
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code


@health_bp.route("/requests", methods=["GET"])
def request_metrics():
    seconds = request.args.get("seconds", 3600, type=int)
    return jsonify(summarize_metrics(max(seconds, 1))), 200
