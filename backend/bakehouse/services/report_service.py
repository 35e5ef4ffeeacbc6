# Overview: Closing shift reports; built from a user's sales and the shift's remaining stock.

"""
Shift Reports

A shift report is the end of the reconciliation flow for one staff member:
what they sold inside the shift window and what was left unsold. Totals
come from stats_service.aggregate_sales over the user's sales logs; the
remaining side is the shift's remaining-stock count. Both are also frozen
into per-bread snapshots (sales_data, remaining_breads).

Submitting again for the same (user, shift, report_date) rebuilds the row
in place. Reports are readable by their creator, managers and owners.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..extensions import db
from ..models import RemainingStock, SalesLog, ShiftReport, User
from ..errors import AuthorizationDenied, NotFoundError
from ..validation import require_shift
from .concurrency import run_with_unique_retry
from .shift_service import ShiftWindow, latest_shift_window, local_date_of, shift_window
from .stats_service import aggregate_sales, sale_revenue


READER_ROLES = ("manager", "owner")


def report_window(shift: str, report_date: date | None = None) -> ShiftWindow:
    """The shift window a report covers; the latest one of that shift when no date is given."""
    if report_date is None:
        return latest_shift_window(shift)
    return shift_window(shift, report_date)


def _window_sales(user_id: int, window: ShiftWindow) -> list[SalesLog]:
    return (
        db.session.query(SalesLog)
        .filter(
            SalesLog.recorded_by == user_id,
            SalesLog.shift == window.shift,
            SalesLog.created_at >= window.start_utc,
            SalesLog.created_at < window.end_utc,
        )
        .order_by(SalesLog.created_at.asc(), SalesLog.id.asc())
        .all()
    )


def _window_remaining(window: ShiftWindow) -> list[RemainingStock]:
    # A night count may be dated either side of midnight; the latest wins per bread type
    first_day = local_date_of(window.start_utc)
    last_day = local_date_of(window.end_utc - timedelta(microseconds=1))
    records = (
        db.session.query(RemainingStock)
        .filter(
            RemainingStock.shift == window.shift,
            RemainingStock.record_date >= first_day,
            RemainingStock.record_date <= last_day,
        )
        .order_by(RemainingStock.record_date.asc(), RemainingStock.id.asc())
        .all()
    )
    latest = {}
    for record in records:
        latest[record.bread_type_id] = record
    return list(latest.values())


def sales_snapshot(sales) -> list[dict]:
    """Per bread type: quantity sold and revenue, sorted by name."""
    rows: dict[int, dict] = {}
    for sale in sales:
        row = rows.setdefault(sale.bread_type_id, {
            "bread_type_id": sale.bread_type_id,
            "bread_type": sale.bread_type.name if sale.bread_type else None,
            "quantity": 0,
            "revenue": 0.0,
        })
        row["quantity"] += sale.quantity or 0
        row["revenue"] += sale_revenue(sale)
    for row in rows.values():
        row["revenue"] = round(row["revenue"], 2)
    return sorted(rows.values(), key=lambda r: (r["bread_type"] or "", r["bread_type_id"]))


def remaining_snapshot(records) -> list[dict]:
    rows = []
    for record in records:
        data = record.to_dict()
        rows.append({
            "bread_type_id": data["bread_type_id"],
            "bread_type": data["bread_type"],
            "quantity": data["quantity"],
            "unit_price": data["unit_price"],
            "total_value": data["total_value"],
        })
    return sorted(rows, key=lambda r: (r["bread_type"] or "", r["bread_type_id"]))


def build_shift_report(user_id: int, shift: str, report_date: date | None = None) -> dict:
    """Compute report fields without writing anything."""
    window = report_window(require_shift(shift), report_date)
    sales = _window_sales(user_id, window)
    remaining = remaining_snapshot(_window_remaining(window))
    summary = aggregate_sales(sales)

    return {
        "shift": window.shift,
        "report_date": window.shift_date,
        "total_revenue": summary.total_revenue,
        "total_items_sold": summary.total_quantity,
        "total_remaining": round(sum(r["total_value"] for r in remaining), 2),
        "sales_data": sales_snapshot(sales),
        "remaining_breads": remaining,
    }


def submit_shift_report(
    *,
    user_id: int,
    shift: str,
    report_date: date | None = None,
    feedback: str | None = None,
) -> tuple[ShiftReport, bool]:
    """
    Build and upsert the report. Returns (report, created).

    A concurrent first submission for the same scope loses the unique key
    and is retried as an update.
    """
    if not db.session.get(User, user_id):
        raise NotFoundError("User not found")

    fields = build_shift_report(user_id, shift, report_date)
    if feedback is not None:
        fields["feedback"] = feedback.strip() or None

    def _op() -> tuple[ShiftReport, bool]:
        report = (
            db.session.query(ShiftReport)
            .filter(
                ShiftReport.user_id == user_id,
                ShiftReport.shift == fields["shift"],
                ShiftReport.report_date == fields["report_date"],
            )
            .one_or_none()
        )
        created = report is None
        if created:
            report = ShiftReport(user_id=user_id)
            db.session.add(report)
        for key, value in fields.items():
            setattr(report, key, value)
        db.session.commit()
        return report, created

    return run_with_unique_retry(_op)


def can_read(viewer: User, report: ShiftReport) -> bool:
    return viewer.role in READER_ROLES or report.user_id == viewer.id


def get_shift_report(report_id: int, viewer: User) -> ShiftReport:
    report = db.session.get(ShiftReport, report_id)
    if not report:
        raise NotFoundError("Report not found")
    if not can_read(viewer, report):
        raise AuthorizationDenied("Permission denied")
    return report


def list_shift_reports(
    viewer: User,
    *,
    user_id: int | None = None,
    shift: str | None = None,
    report_date: date | None = None,
) -> list[ShiftReport]:
    """Sales reps only ever see their own reports; user_id narrows the list for everyone else."""
    if viewer.role not in READER_ROLES:
        if user_id is not None and user_id != viewer.id:
            raise AuthorizationDenied("Permission denied")
        user_id = viewer.id

    query = db.session.query(ShiftReport)
    if user_id is not None:
        query = query.filter(ShiftReport.user_id == user_id)
    if shift:
        query = query.filter(ShiftReport.shift == shift)
    if report_date:
        query = query.filter(ShiftReport.report_date == report_date)
    return query.order_by(ShiftReport.report_date.desc(), ShiftReport.id.desc()).all()
