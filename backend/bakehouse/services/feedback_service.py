# Overview: Service-layer operations for free-text shift feedback notes.

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import ShiftFeedback, User
from ..errors import NotFoundError
from ..validation import ValidationError, require_shift
from .shift_service import local_day_bounds


MAX_NOTE_LENGTH = 2000


def create_feedback(*, user_id: int, shift: str, note: str) -> ShiftFeedback:
    if not user_id or not shift or not note:
        raise ValidationError("Missing required fields", details="user_id, shift, note")
    require_shift(shift)

    note = str(note).strip()
    if not note:
        raise ValidationError("note cannot be blank")
    if len(note) > MAX_NOTE_LENGTH:
        raise ValidationError(f"note exceeds max length {MAX_NOTE_LENGTH}")

    if not db.session.get(User, user_id):
        raise NotFoundError("User not found")

    feedback = ShiftFeedback(user_id=user_id, shift=shift, note=note)
    db.session.add(feedback)
    db.session.commit()
    return feedback


def list_feedback(
    *,
    user_id: int | None = None,
    shift: str | None = None,
    on_date: date | None = None,
) -> list[ShiftFeedback]:
    query = db.session.query(ShiftFeedback)
    if user_id is not None:
        query = query.filter(ShiftFeedback.user_id == user_id)
    if shift:
        query = query.filter(ShiftFeedback.shift == shift)
    if on_date:
        start, end = local_day_bounds(on_date)
        query = query.filter(ShiftFeedback.created_at >= start, ShiftFeedback.created_at < end)
    return query.order_by(ShiftFeedback.created_at.desc(), ShiftFeedback.id.desc()).all()
