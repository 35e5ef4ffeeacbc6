# Overview: Remaining-stock duplicate detection and the transactional upsert that follows it.

"""
Conflict Checker

A remaining-stock submission "conflicts" when no record exists for today's
local date and the most recent record on an earlier date for the same
(bread_type, shift) carries the identical quantity. That usually means a
stale form was re-submitted, so the caller is asked to confirm.

check_remaining_stock_conflicts() is read-only. submit_remaining_stock()
runs the same check and the write inside one transaction; the unique key
(bread_type_id, shift, record_date) turns a concurrent insert into an
update on retry, so the last writer wins.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Iterable

from ..extensions import db
from ..models import BreadType, RemainingStock
from ..errors import ConflictError, NotFoundError
from ..validation import ValidationError, require_shift
from .concurrency import run_with_unique_retry
from .shift_service import local_date_of


@dataclass(frozen=True)
class StockConflict:
    identifier: str
    quantity: int
    existing_date: str
    original_input: dict

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ConflictCheckResult:
    has_conflicts: bool
    conflicts: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "has_conflicts": self.has_conflicts,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


def _normalize_candidate(raw: Any) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError("Each item must be an object")

    bread_type_id = raw.get("bread_type_id")
    if isinstance(bread_type_id, bool) or not isinstance(bread_type_id, int):
        try:
            bread_type_id = int(str(bread_type_id).strip())
        except (TypeError, ValueError):
            raise ValidationError("bread_type_id must be an integer")

    quantity = raw.get("quantity")
    if isinstance(quantity, bool) or isinstance(quantity, float):
        raise ValidationError("quantity must be an integer")
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError("quantity must be an integer")

    item = dict(raw)
    item["bread_type_id"] = bread_type_id
    item["quantity"] = quantity
    item["shift"] = require_shift(raw.get("shift"))
    return item


def normalize_candidates(candidates: Any) -> list[dict]:
    if not isinstance(candidates, list) or not candidates:
        raise ValidationError("items must be a non-empty list")
    return [_normalize_candidate(c) for c in candidates]


def _today_record(item: dict, today: date) -> RemainingStock | None:
    return (
        db.session.query(RemainingStock)
        .filter(
            RemainingStock.bread_type_id == item["bread_type_id"],
            RemainingStock.shift == item["shift"],
            RemainingStock.record_date == today,
        )
        .one_or_none()
    )


def _previous_same_quantity(item: dict, today: date) -> RemainingStock | None:
    return (
        db.session.query(RemainingStock)
        .filter(
            RemainingStock.bread_type_id == item["bread_type_id"],
            RemainingStock.shift == item["shift"],
            RemainingStock.quantity == item["quantity"],
            RemainingStock.record_date != today,
        )
        .order_by(RemainingStock.record_date.desc(), RemainingStock.id.desc())
        .first()
    )


def _identifier(item: dict) -> str:
    """Bread type name, resolved from the catalog when the item does not carry one."""
    if item.get("bread_type"):
        return str(item["bread_type"])
    bread_type = db.session.get(BreadType, item["bread_type_id"])
    return bread_type.name if bread_type else str(item["bread_type_id"])


def check_remaining_stock_conflicts(candidates: Iterable[dict], today: date | None = None) -> ConflictCheckResult:
    """
    Flag likely-duplicate submissions. At most two queries per item.
    """
    today = today or local_date_of()
    conflicts: list[StockConflict] = []

    for item in candidates:
        if _today_record(item, today) is not None:
            continue

        previous = _previous_same_quantity(item, today)
        if previous is None:
            continue

        conflicts.append(StockConflict(
            identifier=_identifier(item),
            quantity=item["quantity"],
            existing_date=previous.record_date.isoformat(),
            original_input=dict(item),
        ))

    return ConflictCheckResult(has_conflicts=bool(conflicts), conflicts=conflicts)


def submit_remaining_stock(
    candidates: list[dict],
    *,
    recorded_by: int,
    confirm: bool = False,
    today: date | None = None,
) -> list[dict]:
    """
    Check and write in one unit of work.

    Raises ConflictError (details carry the conflicts) when the check finds
    any and `confirm` is false; nothing is written in that case.
    Returns one {"bread_type_id", "shift", "result"} per item where result
    is "inserted", "updated" or "skipped" (quantity <= 0).
    """
    today = today or local_date_of()

    bread_types = {}
    for item in candidates:
        bt = db.session.get(BreadType, item["bread_type_id"])
        if not bt:
            raise NotFoundError(f"Bread type {item['bread_type_id']} not found")
        bread_types[bt.id] = bt
        item.setdefault("bread_type", bt.name)

    def _op() -> list[dict]:
        check = check_remaining_stock_conflicts(candidates, today)
        if check.has_conflicts and not confirm:
            db.session.rollback()
            raise ConflictError("Possible duplicate remaining stock", details=check.to_dict())

        outcome = []
        for item in candidates:
            scope = {"bread_type_id": item["bread_type_id"], "shift": item["shift"]}
            if item["quantity"] <= 0:
                outcome.append({**scope, "result": "skipped"})
                continue

            unit_price = item.get("unit_price")
            if unit_price is None:
                unit_price = bread_types[item["bread_type_id"]].unit_price or 0

            record = _today_record(item, today)
            if record is None:
                db.session.add(RemainingStock(
                    bread_type_id=item["bread_type_id"],
                    shift=item["shift"],
                    quantity=item["quantity"],
                    unit_price=unit_price,
                    record_date=today,
                    recorded_by=recorded_by,
                ))
                outcome.append({**scope, "result": "inserted"})
            else:
                record.quantity = item["quantity"]
                record.unit_price = unit_price
                record.recorded_by = recorded_by
                outcome.append({**scope, "result": "updated"})

            db.session.flush()

        db.session.commit()
        return outcome

    return run_with_unique_retry(_op)


def list_remaining_stock(*, shift: str | None = None, record_date: date | None = None) -> list[RemainingStock]:
    query = db.session.query(RemainingStock)
    if shift:
        query = query.filter(RemainingStock.shift == shift)
    if record_date:
        query = query.filter(RemainingStock.record_date == record_date)
    return query.order_by(RemainingStock.record_date.desc(), RemainingStock.id.asc()).all()
