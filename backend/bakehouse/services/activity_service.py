# Overview: Best-effort activity feed writes, role-scoped reads and retention cleanup.

"""
Activity Logger

Activity rows are a side effect of a primary write (batch created, sale
recorded, login, ...). They are written after the primary commit and a
failure here is rolled back and logged, never raised: the caller's
success path does not depend on the feed.

Owners' own actions are not recorded. Managers read only their own
events; owners and sales reps read the whole feed. Every read is limited
to the retention window (ACTIVITY_RETENTION_DAYS, default 3).
"""

from __future__ import annotations

from datetime import timedelta
from functools import wraps

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Activity, User, ACTIVITY_TYPES
from bakehouse.time_utils import utcnow


DEFAULT_RETENTION_DAYS = 3
DEFAULT_FEED_LIMIT = 50
MAX_FEED_LIMIT = 200


def retention_days() -> int:
    if has_app_context():
        return int(current_app.config.get("ACTIVITY_RETENTION_DAYS", DEFAULT_RETENTION_DAYS))
    return DEFAULT_RETENTION_DAYS


def _persist(activity: Activity) -> None:
    db.session.add(activity)
    db.session.commit()


def _best_effort(fn):
    """Any failure inside a logging helper is rolled back and logged, never raised."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except Exception:
            db.session.rollback()
            current_app.logger.warning("Activity logging failed in %s", fn.__name__, exc_info=True)
            return None
    return wrapper


@_best_effort
def log_activity(
    user: User,
    activity_type: str,
    message: str,
    *,
    shift: str | None = None,
    metadata: dict | None = None,
) -> Activity | None:
    """
    Record one activity. Returns the row, or None when skipped or failed.
    """
    if user is None or user.role == "owner":
        return None

    if activity_type not in ACTIVITY_TYPES:
        current_app.logger.warning("Unknown activity type %r ignored", activity_type)
        return None

    activity = Activity(
        user_id=user.id,
        user_name=user.name,
        user_role=user.role,
        activity_type=activity_type,
        shift=shift,
        message=message,
        details=metadata or {},
    )

    try:
        _persist(activity)
    except (SQLAlchemyError, ValueError, TypeError) as e:
        db.session.rollback()
        current_app.logger.warning(
            "Failed to log %s activity for user %s: %s", activity_type, user.id, e
        )
        return None

    return activity


@_best_effort
def log_batch_activity(user: User, batch) -> Activity | None:
    bread_name = batch.bread_type.name if batch.bread_type else f"bread type {batch.bread_type_id}"
    return log_activity(
        user,
        "batch",
        f"Created batch: {batch.actual_quantity}x {bread_name}",
        shift=batch.shift,
        metadata={
            "batch_id": batch.id,
            "batch_number": batch.batch_number,
            "bread_type": bread_name,
            "quantity": batch.actual_quantity,
        },
    )


@_best_effort
def log_sale_activity(user: User, sale) -> Activity | None:
    bread_name = sale.bread_type.name if sale.bread_type else f"bread type {sale.bread_type_id}"
    revenue = (sale.quantity or 0) * ((sale.unit_price or 0) - (sale.discount or 0))
    return log_activity(
        user,
        "sale",
        f"Recorded sale: {sale.quantity}x {bread_name}",
        shift=sale.shift,
        metadata={
            "sale_id": sale.id,
            "bread_type": bread_name,
            "quantity": sale.quantity,
            "revenue": revenue,
        },
    )


@_best_effort
def log_login_activity(user: User, shift: str | None = None) -> Activity | None:
    return log_activity(user, "login", f"{user.name} logged in", shift=shift)


@_best_effort
def log_end_shift_activity(user: User, shift: str, *, deleted: int = 0) -> Activity | None:
    return log_activity(
        user,
        "end_shift",
        f"{user.name} ended {shift} shift",
        shift=shift,
        metadata={"deleted": deleted},
    )


@_best_effort
def log_report_activity(user: User, shift: str, *, items: int) -> Activity | None:
    return log_activity(
        user,
        "report",
        f"Submitted remaining stock report ({items} items)",
        shift=shift,
        metadata={"items": items},
    )


@_best_effort
def log_shift_report_activity(user: User, report, *, created: bool) -> Activity | None:
    verb = "Submitted" if created else "Updated"
    return log_activity(
        user,
        "report",
        f"{verb} {report.shift} shift report",
        shift=report.shift,
        metadata={"report_id": report.id, "total_revenue": report.total_revenue},
    )


@_best_effort
def log_feedback_activity(user: User, feedback) -> Activity | None:
    preview = feedback.note if len(feedback.note) <= 60 else feedback.note[:57] + "..."
    return log_activity(
        user,
        "feedback",
        f"Shift feedback: {preview}",
        shift=feedback.shift,
        metadata={"feedback_id": feedback.id},
    )


def list_activities(viewer: User, limit: int = DEFAULT_FEED_LIMIT) -> list[Activity]:
    limit = max(1, min(int(limit or DEFAULT_FEED_LIMIT), MAX_FEED_LIMIT))
    cutoff = utcnow() - timedelta(days=retention_days())

    query = db.session.query(Activity).filter(Activity.created_at >= cutoff)
    if viewer.role == "manager":
        query = query.filter(Activity.user_id == viewer.id)

    return query.order_by(Activity.created_at.desc(), Activity.id.desc()).limit(limit).all()


def cleanup_old_activities(days: int | None = None) -> int:
    """Delete activities older than the retention window. Returns rows deleted."""
    days = retention_days() if days is None else days
    cutoff = utcnow() - timedelta(days=days)
    deleted = (
        db.session.query(Activity)
        .filter(Activity.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
