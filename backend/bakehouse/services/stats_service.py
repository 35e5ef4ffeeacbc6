# Overview: Pure reductions over already-fetched batch and sales records.

"""
Stats Aggregator

Functions here never touch the database. They accept model instances or
plain mappings, so route handlers can pass query results straight in and
tests can pass dicts. Every figure is a sum or a count, which makes the
output independent of input order and safe to recompute.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

from bakehouse.models import BATCH_STATUSES, SHIFTS
from .shift_service import ShiftPolicy, coerce_instant, local_date_of


def _field(record: Any, name: str, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _number(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _rate(numerator: float, denominator: float) -> float:
    return (numerator / denominator) * 100 if denominator else 0.0


@dataclass(frozen=True)
class BatchStats:
    total_batches: int
    active_batches: int
    completed_batches: int
    cancelled_batches: int
    total_target_quantity: int
    total_actual_quantity: int
    today_batches: int
    completion_rate: float
    efficiency_rate: float
    shift: str
    by_shift: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SalesSummary:
    total_sales: int
    total_quantity: int
    total_revenue: float
    total_discount: float
    by_shift: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


def aggregate_batch_stats(
    batches: Iterable[Any],
    *,
    now=None,
    policy: ShiftPolicy | None = None,
    shift: str | None = None,
) -> BatchStats:
    """
    Reduce batches to counts, quantity totals and rates.

    completion_rate = completed / total * 100 (0 when there are no batches)
    efficiency_rate = actual / target * 100   (0 when target sums to 0)
    today_batches counts batches created on the current local calendar day.
    """
    today = local_date_of(now, policy)

    status_counts = {status: 0 for status in BATCH_STATUSES}
    by_shift = {s: {"total": 0, "completed": 0, "actual_quantity": 0} for s in SHIFTS}
    total = target = actual = today_count = 0

    for batch in batches:
        total += 1
        status = _field(batch, "status")
        if status in status_counts:
            status_counts[status] += 1

        batch_target = int(_number(_field(batch, "target_quantity")))
        batch_actual = int(_number(_field(batch, "actual_quantity")))
        target += batch_target
        actual += batch_actual

        created_at = _field(batch, "created_at")
        if created_at is not None and local_date_of(coerce_instant(created_at), policy) == today:
            today_count += 1

        batch_shift = _field(batch, "shift")
        if batch_shift in by_shift:
            bucket = by_shift[batch_shift]
            bucket["total"] += 1
            bucket["actual_quantity"] += batch_actual
            if status == "completed":
                bucket["completed"] += 1

    return BatchStats(
        total_batches=total,
        active_batches=status_counts["active"],
        completed_batches=status_counts["completed"],
        cancelled_batches=status_counts["cancelled"],
        total_target_quantity=target,
        total_actual_quantity=actual,
        today_batches=today_count,
        completion_rate=_rate(status_counts["completed"], total),
        efficiency_rate=_rate(actual, target),
        shift=shift or "all",
        by_shift=by_shift,
    )


def sale_revenue(sale: Any) -> float:
    """quantity * (unit_price - discount); discount is per unit."""
    quantity = _number(_field(sale, "quantity"))
    unit_price = _number(_field(sale, "unit_price"))
    discount = _number(_field(sale, "discount"))
    return quantity * (unit_price - discount)


def aggregate_sales(sales_logs: Iterable[Any]) -> SalesSummary:
    by_shift = {s: {"sales": 0, "quantity": 0, "revenue": 0.0} for s in SHIFTS}
    count = quantity = 0
    revenue = discount_total = 0.0

    for sale in sales_logs:
        count += 1
        sale_quantity = int(_number(_field(sale, "quantity")))
        sale_total = sale_revenue(sale)
        quantity += sale_quantity
        revenue += sale_total
        discount_total += sale_quantity * _number(_field(sale, "discount"))

        sale_shift = _field(sale, "shift")
        if sale_shift in by_shift:
            bucket = by_shift[sale_shift]
            bucket["sales"] += 1
            bucket["quantity"] += sale_quantity
            bucket["revenue"] += sale_total

    return SalesSummary(
        total_sales=count,
        total_quantity=quantity,
        total_revenue=round(revenue, 2),
        total_discount=round(discount_total, 2),
        by_shift=by_shift,
    )
