from __future__ import annotations

from ..extensions import db
from bakehouse.time_utils import to_utc_z


class SalesLog(db.Model):
    """
    A recorded sale. Immutable once written; the only removal path is the
    end-of-shift clear.
    """
    __tablename__ = "sales_logs"
    __table_args__ = (
        db.Index("ix_sales_logs_shift_created", "shift", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False)
    # Per-unit discount
    discount = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    shift = db.Column(db.String(16), nullable=False)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    bread_type = db.relationship("BreadType", backref=db.backref("sales_logs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type": self.bread_type.name if self.bread_type else None,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "discount": self.discount,
            "shift": self.shift,
            "recorded_by": self.recorded_by,
            "created_at": to_utc_z(self.created_at),
        }


class RemainingStock(db.Model):
    """
    End-of-shift count of unsold loaves.

    One record per (bread_type, shift, local date). A new submission for the
    same day updates the existing row.
    """
    __tablename__ = "remaining_stock"
    __table_args__ = (
        db.UniqueConstraint("bread_type_id", "shift", "record_date", name="uq_remaining_stock_scope_date"),
        db.Index("ix_remaining_stock_scope_qty", "bread_type_id", "shift", "quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)
    shift = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    record_date = db.Column(db.Date, nullable=False, index=True)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    bread_type = db.relationship("BreadType", backref=db.backref("remaining_stock", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type": self.bread_type.name if self.bread_type else None,
            "shift": self.shift,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_value": (self.quantity or 0) * (self.unit_price or 0),
            "record_date": self.record_date.isoformat() if self.record_date else None,
            "recorded_by": self.recorded_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
