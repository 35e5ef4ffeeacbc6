# Overview: Flask API routes for the owner/manager dashboard; staff online and activity feed.

from flask import Blueprint, request, jsonify, g
from sqlalchemy.exc import SQLAlchemyError

from ..errors import data_store_failure, internal_error
from ..services import session_service
from ..services.activity_service import DEFAULT_FEED_LIMIT, list_activities
from ..decorators import require_auth, require_role


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/staff-online")
@require_auth
@require_role("owner", "manager")
def staff_online_route():
    """Active non-owner staff with a live session, out of all active non-owner staff."""
    try:
        counts = session_service.staff_online_count()
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to count online staff")
    except Exception:
        return internal_error("Failed to count online staff")

    return jsonify(counts), 200


@dashboard_bp.get("/activities")
@require_auth
def activities_route():
    """
    Query params:
    - limit: int (optional, default 50, max 200)
    """
    limit = request.args.get("limit", default=DEFAULT_FEED_LIMIT, type=int)
    activities = list_activities(g.current_user, limit)
    return jsonify({"items": [a.to_dict() for a in activities], "count": len(activities)}), 200
