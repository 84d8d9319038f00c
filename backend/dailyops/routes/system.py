# backend/dailyops/routes/system.py
"""
System health endpoint.
"""

import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db
from dailyops.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "response_time_ms": round(elapsed_ms, 2)}
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "error": str(e)}


@system_bp.get("/health")
def health():
    database = check_database_health()
    status = 200 if database["status"] == "healthy" else 503
    return jsonify({
        "status": database["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database},
    }), status
