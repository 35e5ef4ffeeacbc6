# backend/bakehouse/routes/system.py
"""
System health, shift clock and catalog endpoints.
"""

import time
from flask import Blueprint, current_app, jsonify
from ..extensions import db
from ..models import BreadType, SessionToken, User
from ..services.shift_service import ShiftPolicy, current_shift_window
from ..decorators import require_auth
from bakehouse.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a few cheap counts.
    """
    start_time = time.time()
    try:
        details = {
            "users": db.session.query(User).count(),
            "bread_types": db.session.query(BreadType).count(),
            "active_sessions": db.session.query(SessionToken).filter_by(is_revoked=False).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unhealthy
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503

    response = {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }
    return response, http_status


@system_bp.get("/api/shift/current")
def current_shift():
    """The shift running now, its window, and the policy it was computed with."""
    policy = ShiftPolicy.from_app()
    window = current_shift_window(policy=policy)
    return jsonify({
        **window.to_dict(),
        "policy": {
            "morning_start_hour": policy.morning_start_hour,
            "morning_end_hour": policy.morning_end_hour,
            "utc_offset_hours": policy.utc_offset_hours,
        },
    }), 200


@system_bp.get("/api/bread-types")
@require_auth
def list_bread_types():
    bread_types = (
        db.session.query(BreadType)
        .filter(BreadType.is_active.is_(True))
        .order_by(BreadType.name.asc())
        .all()
    )
    return jsonify({"items": [bt.to_dict() for bt in bread_types]}), 200
