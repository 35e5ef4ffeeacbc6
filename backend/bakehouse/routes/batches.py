# Overview: Flask API routes for production batches; parses input and returns JSON responses.

# backend/bakehouse/routes/batches.py
"""
Production batch routes.

Managers create and manage their own batches; owners may modify any.
The batch list is always the caller's own; stats cover every batch.
Sales reps may read but not write.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..models import Batch
from sqlalchemy.exc import SQLAlchemyError

from ..errors import AuthorizationDenied, BakehouseError, data_store_failure, error_response, internal_error
from ..services import batch_service
from ..services.activity_service import log_batch_activity, log_end_shift_activity
from ..services.concurrency import RetriesExhausted
from ..services.shift_service import normalize_shift
from ..services.stats_service import aggregate_batch_stats
from ..validation import (
    BATCH_CREATE_POLICY,
    BATCH_UPDATE_POLICY,
    validate_payload,
    optional_shift,
    optional_status,
    ValidationError,
)
from ..decorators import require_auth, require_role


batches_bp = Blueprint("batches", __name__, url_prefix="/api/batches")


def _can_modify(batch: Batch) -> bool:
    user = g.current_user
    return user.role == "owner" or batch.created_by == user.id


@batches_bp.post("")
@require_auth
@require_role("manager", "owner")
def create_batch_route():
    """
    Create a batch; the batch number is allocated server-side.

    Request body:
    {
        "bread_type_id": 1,        // required
        "actual_quantity": 50,     // required
        "shift": "morning",        // required
        "target_quantity": 60,     // optional
        "notes": "..."             // optional
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Batch, payload=payload, policy=BATCH_CREATE_POLICY, partial=False)
        batch = batch_service.create_batch(created_by=g.current_user.id, **patch)
    except BakehouseError as e:
        return error_response(e)
    except RetriesExhausted as e:
        current_app.logger.error("Batch number allocation failed: %s", e)
        return jsonify({"error": "Failed to create batch", "details": str(e)}), 500
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to create batch")
    except Exception:
        current_app.logger.exception("Failed to create batch")
        return jsonify({"error": "Failed to create batch"}), 500

    log_batch_activity(g.current_user, batch)

    return jsonify(batch.to_dict()), 201


@batches_bp.get("")
@require_auth
def list_batches_route():
    """
    Query params:
    - status: active | completed | cancelled (optional)
    - shift: morning | night (optional)
    """
    batches = batch_service.list_batches(
        created_by=g.current_user.id,
        status=optional_status(request.args.get("status")),
        shift=optional_shift(request.args.get("shift")),
    )
    return jsonify({"items": [b.to_dict() for b in batches], "count": len(batches)}), 200


@batches_bp.get("/stats")
@require_auth
def batch_stats_route():
    shift = optional_shift(request.args.get("shift"))
    try:
        batches = batch_service.list_batches(shift=shift)
        stats = aggregate_batch_stats(batches, shift=shift)
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to compute batch stats")
    except Exception:
        return internal_error("Failed to compute batch stats")

    return jsonify(stats.to_dict()), 200


@batches_bp.get("/generate-number/<int:bread_type_id>")
@require_auth
def generate_number_route(bread_type_id: int):
    """Advisory preview of the next batch number; the real one is allocated on create."""
    shift = normalize_shift(request.args.get("shift"), g.shift)
    number = batch_service.preview_next_batch_number(bread_type_id, shift)
    return jsonify({"batch_number": number, "bread_type_id": bread_type_id, "shift": shift}), 200


@batches_bp.get("/verify-deletion")
@require_auth
def verify_deletion_route():
    """
    Confirm an end-of-shift clear removed everything.

    Query params:
    - shift: morning | night (optional, all shifts if omitted)
    - userId: int (optional, defaults to the caller; owners only for others)
    """
    user_id = request.args.get("userId", type=int) or g.current_user.id
    if user_id != g.current_user.id and g.current_user.role != "owner":
        return error_response(AuthorizationDenied("Permission denied"))

    result = batch_service.verify_deletion(
        created_by=user_id,
        shift=optional_shift(request.args.get("shift")),
    )
    return jsonify(result), 200


@batches_bp.put("/<int:batch_id>")
@require_auth
@require_role("manager", "owner")
def update_batch_route(batch_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Batch, payload=payload, policy=BATCH_UPDATE_POLICY, partial=True)
        batch = batch_service.get_batch(batch_id)
        if not _can_modify(batch):
            return error_response(AuthorizationDenied("Permission denied"))
        batch = batch_service.update_batch(batch_id, patch)
    except BakehouseError as e:
        return error_response(e)
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to update batch")
    except Exception:
        return internal_error("Failed to update batch")

    return jsonify(batch.to_dict()), 200


@batches_bp.delete("/<int:batch_id>")
@require_auth
@require_role("manager", "owner")
def delete_batch_route(batch_id: int):
    try:
        batch = batch_service.get_batch(batch_id)
        if not _can_modify(batch):
            return error_response(AuthorizationDenied("Permission denied"))
        batch_service.delete_batch(batch_id)
    except BakehouseError as e:
        return error_response(e)
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to delete batch")
    except Exception:
        return internal_error("Failed to delete batch")

    return jsonify({"ok": True}), 200


@batches_bp.delete("")
@require_auth
@require_role("manager", "owner")
def end_shift_route():
    """
    End shift: delete the caller's batches.

    Query params:
    - shift: morning | night (optional, all of the caller's batches if omitted)
    """
    raw_shift = request.args.get("shift")
    shift = optional_shift(raw_shift)
    if raw_shift and not shift:
        return error_response(ValidationError("Valid shift (morning or night) is required"))

    try:
        deleted = batch_service.end_shift(created_by=g.current_user.id, shift=shift)
    except SQLAlchemyError as e:
        return data_store_failure(e, "Failed to end shift")
    except Exception:
        return internal_error("Failed to end shift")

    log_end_shift_activity(g.current_user, shift or g.shift, deleted=deleted)

    return jsonify({"deleted": deleted, "shift": shift or "all"}), 200
