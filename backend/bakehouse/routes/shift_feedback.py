# Overview: Flask API routes for shift feedback notes; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..errors import AuthorizationDenied, BakehouseError, data_store_failure, error_response
from ..services import feedback_service
from ..services.activity_service import log_feedback_activity
from ..validation import optional_date, optional_int, optional_shift
from ..decorators import require_auth


shift_feedback_bp = Blueprint("shift_feedback", __name__, url_prefix="/api/shift-feedback")


@shift_feedback_bp.post("")
@require_auth
def create_feedback_route():
    """
    Request body:
    {"user_id": 3, "shift": "night", "note": "Oven 2 running hot"}

    Staff may only post feedback as themselves; owners may post for anyone.
    """
    data = request.get_json(silent=True) or {}

    try:
        user_id = optional_int(data.get("user_id"), "user_id")
    except BakehouseError as e:
        return error_response(e)

    if user_id and user_id != g.current_user.id and g.current_user.role != "owner":
        return error_response(AuthorizationDenied("Permission denied"))

    try:
        feedback = feedback_service.create_feedback(
            user_id=user_id,
            shift=data.get("shift"),
            note=data.get("note"),
        )
    except BakehouseError as e:
        return error_response(e)
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to save feedback")
    except Exception:
        current_app.logger.exception("Failed to save shift feedback")
        return jsonify({"error": "Failed to save feedback"}), 500

    log_feedback_activity(g.current_user, feedback)

    return jsonify(feedback.to_dict()), 201


@shift_feedback_bp.get("")
@require_auth
def list_feedback_route():
    """
    Query params:
    - user_id: int (optional; non-owners are limited to their own notes)
    - shift: morning | night (optional)
    - date: YYYY-MM-DD local date (optional)
    """
    user_id = request.args.get("user_id", type=int)
    if g.current_user.role == "sales_rep":
        user_id = g.current_user.id

    try:
        items = feedback_service.list_feedback(
            user_id=user_id,
            shift=optional_shift(request.args.get("shift")),
            on_date=optional_date(request.args.get("date")),
        )
    except BakehouseError as e:
        return error_response(e)

    return jsonify({"items": [f.to_dict() for f in items], "count": len(items)}), 200
