from __future__ import annotations

from ..extensions import db
from bakehouse.time_utils import to_utc_z


class ShiftReport(db.Model):
    """
    A staff member's closing report for one shift.

    One row per (user, shift, report_date); re-submitting rebuilds the
    totals and snapshots in place. sales_data and remaining_breads are
    frozen copies taken when the report was built, so the report still
    reads correctly after the end-of-shift clear removes the sales logs.
    """
    __tablename__ = "shift_reports"
    __table_args__ = (
        db.UniqueConstraint("user_id", "shift", "report_date", name="uq_shift_reports_user_shift_date"),
        db.Index("ix_shift_reports_shift_date", "shift", "report_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    shift = db.Column(db.String(16), nullable=False)
    report_date = db.Column(db.Date, nullable=False)
    total_revenue = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    total_items_sold = db.Column(db.Integer, nullable=False, default=0)
    # Value of unsold loaves, not a count
    total_remaining = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    feedback = db.Column(db.Text, nullable=True)
    sales_data = db.Column(db.JSON, nullable=False, default=list)
    remaining_breads = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    user = db.relationship("User", backref=db.backref("shift_reports", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "shift": self.shift,
            "report_date": self.report_date.isoformat() if self.report_date else None,
            "total_revenue": self.total_revenue,
            "total_items_sold": self.total_items_sold,
            "total_remaining": self.total_remaining,
            "feedback": self.feedback,
            "sales_data": self.sales_data or [],
            "remaining_breads": self.remaining_breads or [],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
