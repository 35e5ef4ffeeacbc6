# Overview: Service-layer operations for available stock; derived from batches and sales, never stored.

"""
Bakehouse Inventory Semantics (authoritative)

Available stock is derived, not stored:
- produced  = SUM(batch.actual_quantity) over non-cancelled batches
- sold      = SUM(sales_log.quantity)
- available = max(0, produced - sold)

Both sums are taken per bread type over one shift window (see
shift_service.shift_window). Remaining-stock reports are a separate
end-of-shift count entered by staff and are not part of this derivation.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from ..extensions import db
from ..models import Batch, BreadType, SalesLog
from .shift_service import ShiftWindow, latest_shift_window, normalize_shift, shift_window
from .stats_service import sale_revenue


def _field(record: Any, name: str, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def compute_available_stock(batches: Iterable[Any], sales_logs: Iterable[Any]) -> dict[int, dict]:
    """
    Pure: {bread_type_id: {"produced", "sold", "available", "revenue"}}.
    """
    rows: dict[int, dict] = {}

    def _row(bread_type_id) -> dict:
        return rows.setdefault(bread_type_id, {"produced": 0, "sold": 0, "available": 0, "revenue": 0.0})

    for batch in batches:
        if _field(batch, "status") == "cancelled":
            continue
        _row(_field(batch, "bread_type_id"))["produced"] += int(_field(batch, "actual_quantity") or 0)

    for sale in sales_logs:
        row = _row(_field(sale, "bread_type_id"))
        row["sold"] += int(_field(sale, "quantity") or 0)
        row["revenue"] += sale_revenue(sale)

    for row in rows.values():
        row["available"] = max(0, row["produced"] - row["sold"])
        row["revenue"] = round(row["revenue"], 2)

    return rows


def _window_for(shift: str | None, shift_date: date | None) -> ShiftWindow:
    shift = normalize_shift(shift)
    if shift_date is None:
        return latest_shift_window(shift)
    return shift_window(shift, shift_date)


def shift_inventory(shift: str | None = None, shift_date: date | None = None) -> dict:
    """
    Available stock for every active bread type within one shift window.

    Without a date, the most recent window of that shift is used.
    """
    window = _window_for(shift, shift_date)

    batches = (
        db.session.query(Batch)
        .filter(
            Batch.shift == window.shift,
            Batch.created_at >= window.start_utc,
            Batch.created_at < window.end_utc,
        )
        .all()
    )
    sales = (
        db.session.query(SalesLog)
        .filter(
            SalesLog.shift == window.shift,
            SalesLog.created_at >= window.start_utc,
            SalesLog.created_at < window.end_utc,
        )
        .all()
    )

    totals = compute_available_stock(batches, sales)
    bread_types = (
        db.session.query(BreadType)
        .filter(BreadType.is_active.is_(True))
        .order_by(BreadType.name.asc())
        .all()
    )

    items = []
    for bt in bread_types:
        row = totals.get(bt.id, {"produced": 0, "sold": 0, "available": 0, "revenue": 0.0})
        items.append({
            "bread_type_id": bt.id,
            "bread_type": bt.name,
            "unit_price": bt.unit_price,
            **row,
        })

    return {
        "window": window.to_dict(),
        "items": items,
        "total_available": sum(i["available"] for i in items),
        "total_produced": sum(i["produced"] for i in items),
        "total_sold": sum(i["sold"] for i in items),
    }
