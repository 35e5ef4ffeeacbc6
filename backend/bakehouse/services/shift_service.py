# Overview: Service-layer operations for shift resolution; pure functions over a fixed UTC offset.

"""
Shift Resolver

The bakery works two shifts per local calendar day:
- morning: [morning_start_hour, morning_end_hour) local time
- night:   [morning_end_hour, next day's morning_start_hour) local time

A night shift is identified by the local date on which it *starts*, so an
instant at 03:00 local belongs to the previous date's night shift. Windows are
half-open [start, end) and are returned as UTC-naive datetimes, which is how
every timestamp is stored.

All functions are pure; the policy comes from app config via
ShiftPolicy.from_app() but can be passed explicitly (tests do).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from flask import current_app, has_app_context

from bakehouse.models import SHIFTS
from bakehouse.time_utils import parse_iso_datetime, to_naive_utc, to_utc_z, utcnow


@dataclass(frozen=True)
class ShiftPolicy:
    morning_start_hour: int = 10
    morning_end_hour: int = 22
    utc_offset_hours: float = 1.0
    default_shift: str = "morning"

    def __post_init__(self):
        if not 0 <= self.morning_start_hour < self.morning_end_hour <= 24:
            raise ValueError(
                "Shift hours must satisfy 0 <= morning_start_hour < morning_end_hour <= 24"
            )
        if self.default_shift not in SHIFTS:
            raise ValueError(f"default_shift must be one of {SHIFTS}")

    @property
    def offset(self) -> timedelta:
        return timedelta(hours=self.utc_offset_hours)

    @classmethod
    def from_app(cls) -> "ShiftPolicy":
        if not has_app_context():
            return cls()
        cfg = current_app.config
        return cls(
            morning_start_hour=int(cfg.get("SHIFT_MORNING_START_HOUR", 10)),
            morning_end_hour=int(cfg.get("SHIFT_MORNING_END_HOUR", 22)),
            utc_offset_hours=float(cfg.get("SHIFT_UTC_OFFSET_HOURS", 1)),
            default_shift=cfg.get("DEFAULT_SHIFT", "morning"),
        )


@dataclass(frozen=True)
class ShiftWindow:
    shift: str
    shift_date: date
    start_utc: datetime
    end_utc: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start_utc <= instant < self.end_utc

    def to_dict(self) -> dict:
        return {
            "shift": self.shift,
            "shift_date": self.shift_date.isoformat(),
            "start": to_utc_z(self.start_utc),
            "end": to_utc_z(self.end_utc),
        }


def _policy(policy: ShiftPolicy | None) -> ShiftPolicy:
    return policy if policy is not None else ShiftPolicy.from_app()


def coerce_instant(value: Any) -> datetime:
    """
    Best-effort conversion to a UTC-naive datetime.

    Anything unparseable (bad strings, wrong types, None) falls back to now.
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    return utcnow()


def normalize_shift(value: Any, default: str | None = None) -> str:
    if value in SHIFTS:
        return value
    return default if default in SHIFTS else ShiftPolicy.from_app().default_shift


def to_local(instant: Any, policy: ShiftPolicy | None = None) -> datetime:
    """UTC instant -> naive local wall-clock time."""
    return coerce_instant(instant) + _policy(policy).offset


def local_date_of(instant: Any = None, policy: ShiftPolicy | None = None) -> date:
    return to_local(instant, policy).date()


def local_day_bounds(day: date, policy: ShiftPolicy | None = None) -> tuple[datetime, datetime]:
    """UTC bounds [start, end) of a local calendar day."""
    p = _policy(policy)
    start = datetime(day.year, day.month, day.day) - p.offset
    return start, start + timedelta(days=1)


def resolve_shift(instant: Any = None, policy: ShiftPolicy | None = None) -> tuple[str, date]:
    """Return (shift, shift_date) for an instant; see module docstring."""
    p = _policy(policy)
    local = to_local(instant, p)
    hour = local.hour + local.minute / 60 + local.second / 3600

    if p.morning_start_hour <= hour < p.morning_end_hour:
        return "morning", local.date()
    if hour >= p.morning_end_hour:
        return "night", local.date()
    # Early hours belong to the night shift that started yesterday
    return "night", local.date() - timedelta(days=1)


def classify_shift(instant: Any = None, policy: ShiftPolicy | None = None) -> str:
    return resolve_shift(instant, policy)[0]


def shift_window(shift: str, shift_date: date, policy: ShiftPolicy | None = None) -> ShiftWindow:
    p = _policy(policy)
    shift = normalize_shift(shift, p.default_shift)
    midnight_utc = datetime(shift_date.year, shift_date.month, shift_date.day) - p.offset

    if shift == "morning":
        start = midnight_utc + timedelta(hours=p.morning_start_hour)
        end = midnight_utc + timedelta(hours=p.morning_end_hour)
    else:
        start = midnight_utc + timedelta(hours=p.morning_end_hour)
        end = midnight_utc + timedelta(hours=24 + p.morning_start_hour)

    return ShiftWindow(shift=shift, shift_date=shift_date, start_utc=start, end_utc=end)


def current_shift_window(now: Any = None, policy: ShiftPolicy | None = None) -> ShiftWindow:
    p = _policy(policy)
    shift, shift_date = resolve_shift(now, p)
    return shift_window(shift, shift_date, p)


def latest_shift_window(shift: str, now: Any = None, policy: ShiftPolicy | None = None) -> ShiftWindow:
    """
    The most recent window of `shift` that has started at `now`.

    During the morning, the latest night window is last night's.
    """
    p = _policy(policy)
    current, shift_date = resolve_shift(now, p)
    if current == shift:
        return shift_window(shift, shift_date, p)
    if shift == "night":
        # Morning now: last night started on the previous date
        return shift_window("night", shift_date - timedelta(days=1), p)
    # Night now: this date's morning already ran
    return shift_window("morning", shift_date, p)


def is_in_shift(
    created_at: Any,
    shift: str,
    shift_date: date,
    policy: ShiftPolicy | None = None,
) -> bool:
    """Whether a timestamp falls inside the given shift's window."""
    return shift_window(shift, shift_date, policy).contains(coerce_instant(created_at))
