from __future__ import annotations

from ..extensions import db
from bakehouse.time_utils import to_utc_z


SHIFTS = ("morning", "night")
BATCH_STATUSES = ("active", "completed", "cancelled")


class Batch(db.Model):
    """
    One production run of a bread type.

    batch_number is a zero-padded sequence scoped to (bread_type_id, shift).
    The unique constraint is the final arbiter under concurrent creation; see
    batch_service.create_batch for the allocate-insert-retry loop.
    """
    __tablename__ = "batches"
    __table_args__ = (
        db.UniqueConstraint("bread_type_id", "shift", "batch_number", name="uq_batches_scope_number"),
        db.Index("ix_batches_creator_shift", "created_by", "shift"),
        db.Index("ix_batches_shift_created", "shift", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)
    batch_number = db.Column(db.String(32), nullable=False)
    shift = db.Column(db.String(16), nullable=False)

    # Lifecycle: active -> completed | cancelled
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    target_quantity = db.Column(db.Integer, nullable=True)
    actual_quantity = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    start_time = db.Column(db.DateTime(timezone=True), nullable=True)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    bread_type = db.relationship("BreadType", backref=db.backref("batches", lazy=True))
    creator = db.relationship("User", backref=db.backref("batches", lazy=True))

    def __repr__(self) -> str:
        return f"<Batch id={self.id} {self.shift}:{self.bread_type_id}:{self.batch_number}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type": self.bread_type.name if self.bread_type else None,
            "batch_number": self.batch_number,
            "shift": self.shift,
            "status": self.status,
            "target_quantity": self.target_quantity,
            "actual_quantity": self.actual_quantity,
            "notes": self.notes,
            "start_time": to_utc_z(self.start_time) if self.start_time else None,
            "end_time": to_utc_z(self.end_time) if self.end_time else None,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
