# Overview: Flask API routes for sales logs; parses input and returns JSON responses.

# backend/bakehouse/routes/sales.py
"""
Sales routes.

Sales reps see their own sales; managers and owners see all. "End shift"
clears the caller's own sales logs for a shift; owners may clear every
user's with all=true.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..models import SalesLog
from sqlalchemy.exc import SQLAlchemyError

from ..errors import AuthorizationDenied, BakehouseError, data_store_failure, error_response, internal_error
from ..services import sales_service
from ..services.activity_service import log_end_shift_activity, log_sale_activity
from ..services.stats_service import aggregate_sales
from ..validation import (
    SALE_CREATE_POLICY,
    validate_payload,
    optional_date,
    optional_shift,
)
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _scope_user_id() -> int | None:
    user = g.current_user
    return user.id if user.role == "sales_rep" else None


@sales_bp.post("")
@require_auth
def record_sale_route():
    """
    Request body:
    {
        "bread_type_id": 1,   // required
        "quantity": 3,        // required, > 0
        "shift": "morning",   // required
        "unit_price": 500,    // optional, defaults to the bread type price
        "discount": 50        // optional, per unit
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=SalesLog, payload=payload, policy=SALE_CREATE_POLICY, partial=False)
        sale = sales_service.record_sale(recorded_by=g.current_user.id, **patch)
    except BakehouseError as e:
        return error_response(e)
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to record sale")
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Failed to record sale"}), 500

    log_sale_activity(g.current_user, sale)

    return jsonify(sale.to_dict()), 201


def _filtered_sales():
    return sales_service.list_sales(
        recorded_by=_scope_user_id(),
        shift=optional_shift(request.args.get("shift")),
        on_date=optional_date(request.args.get("date")),
    )


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Query params:
    - shift: morning | night (optional)
    - date: YYYY-MM-DD local date (optional)
    """
    try:
        sales = _filtered_sales()
    except BakehouseError as e:
        return error_response(e)

    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/summary")
@require_auth
def sales_summary_route():
    try:
        summary = aggregate_sales(_filtered_sales())
    except BakehouseError as e:
        return error_response(e)

    return jsonify(summary.to_dict()), 200


@sales_bp.delete("")
@require_auth
def clear_sales_route():
    """
    End shift: delete the caller's sales logs for a shift.

    Query params:
    - shift: morning | night (required)
    - all: true to clear every user's logs (owners only)
    """
    shift = optional_shift(request.args.get("shift"))
    if not shift:
        return jsonify({"error": "Valid shift (morning or night) is required"}), 400

    clear_all = request.args.get("all", "").lower() == "true"
    if clear_all and g.current_user.role != "owner":
        return error_response(AuthorizationDenied("Permission denied", details={"required_roles": ["owner"]}))

    try:
        deleted = sales_service.clear_shift_sales(
            shift=shift,
            recorded_by=None if clear_all else g.current_user.id,
        )
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to clear shift sales")
    except Exception:
        return internal_error("Failed to clear shift sales")

    log_end_shift_activity(g.current_user, shift, deleted=deleted)

    return jsonify({"deleted": deleted, "shift": shift}), 200
