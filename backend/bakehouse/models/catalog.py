from __future__ import annotations

from ..extensions import db
from bakehouse.time_utils import to_utc_z


class BreadType(db.Model):
    __tablename__ = "bread_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    size = db.Column(db.String(32), nullable=True)
    unit_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<BreadType id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "unit_price": self.unit_price,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
