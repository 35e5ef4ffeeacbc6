from __future__ import annotations

from ..extensions import db
from bakehouse.time_utils import to_utc_z


ACTIVITY_TYPES = ("sale", "batch", "report", "login", "end_shift", "created", "feedback")


class Activity(db.Model):
    """
    Append-only activity feed for the owner dashboard.

    Rows are denormalized (user_name, user_role) so the feed survives user
    edits. Rows older than the retention window are purged by
    `flask maintenance cleanup-activities`.
    """
    __tablename__ = "activities"
    __table_args__ = (
        db.Index("ix_activities_created", "created_at"),
        db.Index("ix_activities_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    user_name = db.Column(db.String(120), nullable=False)
    user_role = db.Column(db.String(16), nullable=False)
    activity_type = db.Column(db.String(32), nullable=False)
    shift = db.Column(db.String(16), nullable=True)
    message = db.Column(db.Text, nullable=False)
    # "metadata" is reserved on declarative classes
    details = db.Column("metadata", db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_role": self.user_role,
            "activity_type": self.activity_type,
            "shift": self.shift,
            "message": self.message,
            "metadata": self.details or {},
            "created_at": to_utc_z(self.created_at),
        }


class ShiftFeedback(db.Model):
    __tablename__ = "shift_feedback"
    __table_args__ = (
        db.Index("ix_shift_feedback_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    shift = db.Column(db.String(16), nullable=False)
    note = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("shift_feedback", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "user_role": self.user.role if self.user else None,
            "shift": self.shift,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
