# Overview: Service-layer operations for sales logs; recording, listing and end-of-shift clearing.

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import BreadType, SalesLog
from ..errors import NotFoundError
from ..validation import enforce_rules_sale
from .shift_service import local_day_bounds


def record_sale(
    *,
    bread_type_id: int,
    quantity: int,
    shift: str,
    recorded_by: int,
    unit_price: float | None = None,
    discount: float | None = None,
) -> SalesLog:
    """
    Record a sale. unit_price defaults to the bread type's list price;
    discount is per unit and defaults to 0.
    """
    enforce_rules_sale({
        "shift": shift,
        "quantity": quantity,
        "unit_price": unit_price,
        "discount": discount,
    })

    bread_type = db.session.get(BreadType, bread_type_id)
    if not bread_type:
        raise NotFoundError("Bread type not found")

    sale = SalesLog(
        bread_type_id=bread_type_id,
        quantity=quantity,
        unit_price=bread_type.unit_price if unit_price is None else unit_price,
        discount=discount or 0,
        shift=shift,
        recorded_by=recorded_by,
    )
    db.session.add(sale)
    db.session.commit()
    return sale


def list_sales(
    *,
    recorded_by: int | None = None,
    shift: str | None = None,
    on_date: date | None = None,
) -> list[SalesLog]:
    query = db.session.query(SalesLog)
    if recorded_by is not None:
        query = query.filter(SalesLog.recorded_by == recorded_by)
    if shift:
        query = query.filter(SalesLog.shift == shift)
    if on_date:
        start, end = local_day_bounds(on_date)
        query = query.filter(SalesLog.created_at >= start, SalesLog.created_at < end)
    return query.order_by(SalesLog.created_at.desc(), SalesLog.id.desc()).all()


def clear_shift_sales(*, shift: str | None = None, recorded_by: int | None = None) -> int:
    """Delete sales logs for "end shift"; recorded_by=None clears every user. Returns rows deleted."""
    query = db.session.query(SalesLog)
    if shift:
        query = query.filter(SalesLog.shift == shift)
    if recorded_by is not None:
        query = query.filter(SalesLog.recorded_by == recorded_by)
    deleted = query.delete(synchronize_session=False)
    db.session.commit()
    return deleted
