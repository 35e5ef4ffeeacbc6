# Overview: Flask API routes for derived shift inventory; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g
from sqlalchemy.exc import SQLAlchemyError

from ..errors import BakehouseError, data_store_failure, error_response, internal_error
from ..services.inventory_service import shift_inventory
from ..services.shift_service import normalize_shift
from ..validation import optional_date
from ..decorators import require_auth


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("/shift")
@require_auth
def shift_inventory_route():
    """
    Available stock per bread type for one shift window.

    Query params:
    - shift: morning | night (optional, defaults to the session's shift)
    - date: YYYY-MM-DD date the shift started (optional, latest window if omitted)
    """
    try:
        result = shift_inventory(
            normalize_shift(request.args.get("shift"), g.shift),
            optional_date(request.args.get("date")),
        )
    except BakehouseError as e:
        return error_response(e)
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to compute shift inventory")
    except Exception:
        return internal_error("Failed to compute shift inventory")

    return jsonify(result), 200
