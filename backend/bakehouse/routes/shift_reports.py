# Overview: Flask API routes for closing shift reports; parses input and returns JSON responses.

"""
Shift report routes.

POST builds the caller's report from their sales in the shift window and
the shift's remaining stock, then upserts it. Reports are readable by
their creator, managers and owners.
"""

from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..errors import BakehouseError, data_store_failure, error_response
from ..services import report_service
from ..services.activity_service import log_shift_report_activity
from ..services.concurrency import RetriesExhausted
from ..validation import optional_date, optional_int, optional_shift, require_shift
from ..decorators import require_auth


shift_reports_bp = Blueprint("shift_reports", __name__, url_prefix="/api/shift-reports")


@shift_reports_bp.post("")
@require_auth
def submit_report_route():
    """
    Request body:
    {
        "shift": "night",                 // optional, defaults to the session shift
        "report_date": "2026-10-18",      // optional, latest window of the shift
        "feedback": "Oven 2 running hot"  // optional
    }

    201 when a new report is created, 200 when an existing one is rebuilt.
    """
    data = request.get_json(silent=True) or {}

    try:
        shift = require_shift(data.get("shift") or g.shift)
        report_date = optional_date(data.get("report_date"), "report_date")
        report, created = report_service.submit_shift_report(
            user_id=g.current_user.id,
            shift=shift,
            report_date=report_date,
            feedback=data.get("feedback"),
        )
    except BakehouseError as e:
        return error_response(e)
    except RetriesExhausted as e:
        current_app.logger.error("Shift report upsert failed: %s", e)
        return jsonify({"error": "Failed to save shift report"}), 500
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to save shift report")
    except Exception:
        current_app.logger.exception("Failed to save shift report")
        return jsonify({"error": "Failed to save shift report"}), 500

    log_shift_report_activity(g.current_user, report, created=created)

    return jsonify({**report.to_dict(), "was_updated": not created}), 201 if created else 200


@shift_reports_bp.get("")
@require_auth
def list_reports_route():
    """
    Query params:
    - user_id: int (optional; sales reps may only ask for themselves)
    - shift: morning | night (optional)
    - date: YYYY-MM-DD report date (optional)
    """
    try:
        reports = report_service.list_shift_reports(
            g.current_user,
            user_id=optional_int(request.args.get("user_id"), "user_id"),
            shift=optional_shift(request.args.get("shift")),
            report_date=optional_date(request.args.get("date")),
        )
    except BakehouseError as e:
        return error_response(e)

    return jsonify({"items": [r.to_dict() for r in reports], "count": len(reports)}), 200


@shift_reports_bp.get("/<int:report_id>")
@require_auth
def get_report_route(report_id: int):
    try:
        report = report_service.get_shift_report(report_id, g.current_user)
    except BakehouseError as e:
        return error_response(e)

    return jsonify(report.to_dict()), 200
