# Overview: Flask API routes for end-of-shift remaining stock; duplicate check and submission.

# backend/bakehouse/routes/remaining_stock.py
"""
Remaining stock routes.

POST /check is a dry run. POST "" checks and writes in one transaction:
when the check finds likely duplicates and "confirm" is not true the
response is 409 with the conflicts, and nothing is written.
"""

from flask import Blueprint, request, jsonify, current_app, g

from sqlalchemy.exc import SQLAlchemyError

from ..errors import BakehouseError, ConflictError, data_store_failure, error_response, internal_error
from ..services import conflict_service
from ..services.activity_service import log_report_activity
from ..services.concurrency import RetriesExhausted
from ..validation import optional_date, optional_shift
from ..decorators import require_auth


remaining_stock_bp = Blueprint("remaining_stock", __name__, url_prefix="/api/remaining-stock")


def _items_from_request() -> list[dict]:
    data = request.get_json(silent=True) or {}
    items = conflict_service.normalize_candidates(data.get("items"))
    for item in items:
        item["recorded_by"] = g.current_user.id
    return items


@remaining_stock_bp.post("/check")
@require_auth
def check_conflicts_route():
    """
    Request body:
    {"items": [{"bread_type_id": 1, "shift": "morning", "quantity": 20}, ...]}
    """
    try:
        items = _items_from_request()
        result = conflict_service.check_remaining_stock_conflicts(items)
    except BakehouseError as e:
        return error_response(e)
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to check remaining stock conflicts")
    except Exception:
        return internal_error("Failed to check remaining stock conflicts")

    return jsonify(result.to_dict()), 200


@remaining_stock_bp.post("")
@require_auth
def submit_remaining_stock_route():
    """
    Request body:
    {
        "items": [{"bread_type_id": 1, "shift": "morning", "quantity": 20, "unit_price": 500}],
        "confirm": false
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        items = _items_from_request()
        results = conflict_service.submit_remaining_stock(
            items,
            recorded_by=g.current_user.id,
            confirm=bool(data.get("confirm")),
        )
    except ConflictError as e:
        return jsonify({"error": e.message, **(e.details or {})}), 409
    except BakehouseError as e:
        return error_response(e)
    except RetriesExhausted as e:
        current_app.logger.error("Remaining stock upsert failed: %s", e)
        return jsonify({"error": "Failed to save remaining stock"}), 500
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to save remaining stock")
    except Exception:
        current_app.logger.exception("Failed to save remaining stock")
        return jsonify({"error": "Failed to save remaining stock"}), 500

    written = [r for r in results if r["result"] != "skipped"]
    if written:
        log_report_activity(g.current_user, items[0]["shift"], items=len(written))

    return jsonify({"results": results}), 200


@remaining_stock_bp.get("")
@require_auth
def list_remaining_stock_route():
    """
    Query params:
    - shift: morning | night (optional)
    - date: YYYY-MM-DD record date (optional)
    """
    try:
        records = conflict_service.list_remaining_stock(
            shift=optional_shift(request.args.get("shift")),
            record_date=optional_date(request.args.get("date")),
        )
    except BakehouseError as e:
        return error_response(e)

    return jsonify({
        "items": [r.to_dict() for r in records],
        "count": len(records),
        "total_value": sum(r.to_dict()["total_value"] for r in records),
    }), 200
