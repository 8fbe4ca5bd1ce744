# Overview: Flask API routes for health checks.

"""
System health endpoint.

Used by deploy scripts and the front-end to check the API and database are up.
"""

import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db
from shoppos.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """Round-trip a trivial query; report latency."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "error": "Database unavailable"}


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return jsonify({
        "status": "ok" if healthy else "degraded",
        "database": database,
        "timestamp": to_utc_z(utcnow()),
    }), 200 if healthy else 503
