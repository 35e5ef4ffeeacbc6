"""
Shift resolution tests.

Times are given in UTC; the default policy is UTC+1 with morning
10:00-22:00 local, so 09:00Z is 10:00 local.
"""

from datetime import date, datetime

import pytest

from bakehouse.services.shift_service import (
    ShiftPolicy,
    classify_shift,
    coerce_instant,
    current_shift_window,
    is_in_shift,
    latest_shift_window,
    local_date_of,
    local_day_bounds,
    normalize_shift,
    resolve_shift,
    shift_window,
)


POLICY = ShiftPolicy()


class TestClassifyShift:

    @pytest.mark.parametrize(
        "utc,expected",
        [
            (datetime(2026, 3, 2, 9, 0, 0), "morning"),     # 10:00 local
            (datetime(2026, 3, 2, 14, 30, 0), "morning"),
            (datetime(2026, 3, 2, 20, 59, 59), "morning"),  # 21:59:59 local
            (datetime(2026, 3, 2, 21, 0, 0), "night"),      # 22:00 local
            (datetime(2026, 3, 2, 23, 30, 0), "night"),     # 00:30 local next day
            (datetime(2026, 3, 3, 8, 59, 59), "night"),     # 09:59:59 local
        ],
    )
    def test_boundaries(self, utc, expected):
        assert classify_shift(utc, POLICY) == expected

    def test_accepts_iso_strings_with_z(self):
        assert classify_shift("2026-03-02T12:00:00Z", POLICY) == "morning"

    def test_accepts_offset_strings(self):
        # 23:00 at +01:00 is 22:00Z, i.e. 23:00 local
        assert classify_shift("2026-03-02T23:00:00+01:00", POLICY) == "night"

    def test_alternate_convention_is_configurable(self):
        early = ShiftPolicy(morning_start_hour=6, morning_end_hour=14, utc_offset_hours=1)
        assert classify_shift(datetime(2026, 3, 2, 5, 0), early) == "morning"   # 06:00 local
        assert classify_shift(datetime(2026, 3, 2, 13, 0), early) == "night"    # 14:00 local


class TestResolveShift:

    def test_early_hours_belong_to_previous_night(self):
        # 02:00Z on the 3rd is 03:00 local on the 3rd
        assert resolve_shift(datetime(2026, 3, 3, 2, 0), POLICY) == ("night", date(2026, 3, 2))

    def test_late_evening_starts_that_nights_shift(self):
        assert resolve_shift(datetime(2026, 3, 2, 22, 0), POLICY) == ("night", date(2026, 3, 2))

    def test_morning_is_same_day(self):
        assert resolve_shift(datetime(2026, 3, 2, 10, 0), POLICY) == ("morning", date(2026, 3, 2))

    def test_crosses_month_boundary(self):
        assert resolve_shift(datetime(2026, 3, 1, 0, 30), POLICY) == ("night", date(2026, 2, 28))


class TestMalformedInput:

    @pytest.mark.parametrize("bad", ["not a date", "", None, 12345, object()])
    def test_falls_back_to_now(self, bad):
        before = coerce_instant(None)
        value = coerce_instant(bad)
        assert value >= before
        assert classify_shift(bad, POLICY) in ("morning", "night")

    def test_normalize_shift(self):
        assert normalize_shift("night") == "night"
        assert normalize_shift("evening", "morning") == "morning"
        assert normalize_shift(None, "night") == "night"


class TestShiftWindow:

    def test_morning_window(self):
        w = shift_window("morning", date(2026, 3, 2), POLICY)
        assert w.start_utc == datetime(2026, 3, 2, 9, 0)
        assert w.end_utc == datetime(2026, 3, 2, 21, 0)

    def test_night_window_spans_midnight(self):
        w = shift_window("night", date(2026, 3, 2), POLICY)
        assert w.start_utc == datetime(2026, 3, 2, 21, 0)
        assert w.end_utc == datetime(2026, 3, 3, 9, 0)

    def test_windows_are_half_open_and_contiguous(self):
        morning = shift_window("morning", date(2026, 3, 2), POLICY)
        night = shift_window("night", date(2026, 3, 2), POLICY)
        next_morning = shift_window("morning", date(2026, 3, 3), POLICY)
        assert morning.end_utc == night.start_utc
        assert night.end_utc == next_morning.start_utc
        assert morning.contains(morning.start_utc)
        assert not morning.contains(morning.end_utc)

    def test_is_in_shift(self):
        assert is_in_shift(datetime(2026, 3, 3, 1, 0), "night", date(2026, 3, 2), POLICY)
        assert not is_in_shift(datetime(2026, 3, 3, 1, 0), "night", date(2026, 3, 3), POLICY)
        assert not is_in_shift(datetime(2026, 3, 3, 1, 0), "morning", date(2026, 3, 2), POLICY)

    def test_current_window_contains_now(self):
        now = datetime(2026, 3, 2, 23, 15)
        w = current_shift_window(now, POLICY)
        assert w.shift == "night"
        assert w.contains(now)

    def test_latest_window_during_morning_is_last_night(self):
        now = datetime(2026, 3, 2, 12, 0)
        w = latest_shift_window("night", now, POLICY)
        assert w.shift_date == date(2026, 3, 1)
        assert w.end_utc <= now

    def test_to_dict(self):
        d = shift_window("night", date(2026, 3, 2), POLICY).to_dict()
        assert d == {
            "shift": "night",
            "shift_date": "2026-03-02",
            "start": "2026-03-02T21:00:00Z",
            "end": "2026-03-03T09:00:00Z",
        }


class TestLocalDay:

    def test_local_date_rolls_over_at_local_midnight(self):
        assert local_date_of(datetime(2026, 3, 2, 22, 59), POLICY) == date(2026, 3, 2)
        assert local_date_of(datetime(2026, 3, 2, 23, 0), POLICY) == date(2026, 3, 3)

    def test_local_day_bounds(self):
        start, end = local_day_bounds(date(2026, 3, 2), POLICY)
        assert start == datetime(2026, 3, 1, 23, 0)
        assert end == datetime(2026, 3, 2, 23, 0)


def test_policy_rejects_inverted_hours():
    with pytest.raises(ValueError):
        ShiftPolicy(morning_start_hour=22, morning_end_hour=10)
