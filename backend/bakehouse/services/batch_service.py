# Overview: Service-layer operations for production batches; numbering, CRUD and end-of-shift clearing.

"""
Batch Service

Batch numbers are zero-padded decimal strings ("001", "002", ...) scoped to
(bread_type_id, shift). Two entry points compute the next number:

- preview_next_batch_number(): advisory read for the UI, no write.
- create_batch(): allocates and inserts in one unit of work. The scope's
  last row is read FOR UPDATE, the next number is derived and the row
  inserted; the unique constraint on (bread_type_id, shift, batch_number)
  rejects the loser of any remaining race, which is rolled back and retried.
"""

from __future__ import annotations

import re
from datetime import datetime

from flask import current_app, has_app_context
from sqlalchemy import func

from ..extensions import db
from ..models import Batch, BreadType
from ..errors import NotFoundError
from ..validation import ValidationError, enforce_rules_batch
from .concurrency import lock_for_update, run_with_unique_retry
from bakehouse.time_utils import to_utc_z, utcnow


TRAILING_DIGITS = re.compile(r"(\d+)$")
MAX_ALLOCATION_ATTEMPTS = 5


def _pad_width() -> int:
    if has_app_context():
        return int(current_app.config.get("BATCH_NUMBER_PAD", 3))
    return 3


def format_batch_number(number: int, pad: int | None = None) -> str:
    width = pad if pad is not None else _pad_width()
    return f"{number:0{width}d}"


def next_sequence(last_batch_number: str | None) -> int:
    """
    Sequence that follows `last_batch_number`.

    Missing, empty or non-numeric suffixes restart at 1. Never raises.
    """
    if not last_batch_number or not isinstance(last_batch_number, str):
        return 1
    match = TRAILING_DIGITS.search(last_batch_number.strip())
    if not match:
        return 1
    try:
        return int(match.group(1)) + 1
    except ValueError:
        return 1


def _last_batch_query(bread_type_id: int, shift: str):
    # Length first so "1000" sorts after "999"
    return (
        db.session.query(Batch)
        .filter(Batch.bread_type_id == bread_type_id, Batch.shift == shift)
        .order_by(func.length(Batch.batch_number).desc(), Batch.batch_number.desc())
    )


def preview_next_batch_number(bread_type_id: int, shift: str) -> str:
    last = _last_batch_query(bread_type_id, shift).first()
    return format_batch_number(next_sequence(last.batch_number if last else None))


def create_batch(
    *,
    bread_type_id: int,
    shift: str,
    created_by: int,
    actual_quantity: int = 0,
    target_quantity: int | None = None,
    notes: str | None = None,
    start_time: datetime | None = None,
    status: str = "active",
) -> Batch:
    enforce_rules_batch({
        "shift": shift,
        "status": status,
        "actual_quantity": actual_quantity,
        "target_quantity": target_quantity,
    })

    if not db.session.get(BreadType, bread_type_id):
        raise NotFoundError("Bread type not found")

    def _op() -> Batch:
        last = lock_for_update(_last_batch_query(bread_type_id, shift)).first()
        number = format_batch_number(next_sequence(last.batch_number if last else None))

        batch = Batch(
            bread_type_id=bread_type_id,
            batch_number=number,
            shift=shift,
            status=status or "active",
            actual_quantity=actual_quantity or 0,
            target_quantity=target_quantity,
            notes=notes,
            start_time=start_time or utcnow(),
            created_by=created_by,
        )
        db.session.add(batch)
        db.session.commit()
        return batch

    return run_with_unique_retry(_op, attempts=MAX_ALLOCATION_ATTEMPTS)


def get_batch(batch_id: int) -> Batch:
    batch = db.session.get(Batch, batch_id)
    if not batch:
        raise NotFoundError("Batch not found")
    return batch


def list_batches(*, created_by: int | None = None, status: str | None = None, shift: str | None = None) -> list[Batch]:
    query = db.session.query(Batch)
    if created_by is not None:
        query = query.filter(Batch.created_by == created_by)
    if status:
        query = query.filter(Batch.status == status)
    if shift:
        query = query.filter(Batch.shift == shift)
    return query.order_by(Batch.created_at.desc(), Batch.id.desc()).all()


def update_batch(batch_id: int, patch: dict) -> Batch:
    if not patch:
        raise ValidationError("No updatable fields provided")
    enforce_rules_batch(patch)

    batch = get_batch(batch_id)
    for key, value in patch.items():
        setattr(batch, key, value)

    if patch.get("status") in ("completed", "cancelled") and batch.end_time is None:
        batch.end_time = utcnow()

    db.session.commit()
    return batch


def delete_batch(batch_id: int) -> None:
    batch = get_batch(batch_id)
    db.session.delete(batch)
    db.session.commit()


def end_shift(*, created_by: int, shift: str | None = None) -> int:
    """Delete the caller's batches (optionally for one shift). Returns rows deleted."""
    query = db.session.query(Batch).filter(Batch.created_by == created_by)
    if shift:
        query = query.filter(Batch.shift == shift)
    deleted = query.delete(synchronize_session=False)
    db.session.commit()
    return deleted


def verify_deletion(*, created_by: int, shift: str | None = None) -> dict:
    """Confirm that no batches remain for a scope after end_shift()."""
    query = db.session.query(Batch).filter(Batch.created_by == created_by)
    if shift:
        query = query.filter(Batch.shift == shift)
    remaining = query.order_by(Batch.created_at.desc()).all()

    if remaining:
        current_app.logger.warning(
            "Batches still exist after deletion: user=%s shift=%s count=%d",
            created_by, shift or "all", len(remaining),
        )

    return {
        "is_deleted": not remaining,
        "remaining_count": len(remaining),
        "remaining_batches": [
            {
                "id": b.id,
                "batch_number": b.batch_number,
                "shift": b.shift,
                "status": b.status,
                "created_at": to_utc_z(b.created_at),
            }
            for b in remaining
        ],
        "shift": shift or "all",
        "user_id": created_by,
    }
