"""
Stats aggregation over plain records.
"""

import random
from datetime import datetime

import pytest

from bakehouse.services.shift_service import ShiftPolicy
from bakehouse.services.stats_service import aggregate_batch_stats, aggregate_sales, sale_revenue


POLICY = ShiftPolicy()
NOW = datetime(2026, 3, 2, 12, 0)


def test_rates_from_known_input():
    batches = [
        {"status": "completed", "target_quantity": 10, "actual_quantity": 8},
        {"status": "active", "target_quantity": 5, "actual_quantity": 0},
    ]
    stats = aggregate_batch_stats(batches, now=NOW, policy=POLICY)

    assert stats.total_batches == 2
    assert stats.completed_batches == 1
    assert stats.active_batches == 1
    assert stats.completion_rate == 50
    assert stats.efficiency_rate == pytest.approx(53.333, rel=1e-3)


def test_empty_input_yields_zero_rates():
    stats = aggregate_batch_stats([], now=NOW, policy=POLICY)
    assert stats.total_batches == 0
    assert stats.completion_rate == 0
    assert stats.efficiency_rate == 0


def test_zero_target_yields_zero_efficiency():
    stats = aggregate_batch_stats(
        [{"status": "active", "target_quantity": None, "actual_quantity": 30}],
        now=NOW, policy=POLICY,
    )
    assert stats.total_actual_quantity == 30
    assert stats.efficiency_rate == 0


def test_today_uses_local_day_boundary():
    batches = [
        # 23:30Z on the 1st is 00:30 local on the 2nd
        {"status": "active", "created_at": datetime(2026, 3, 1, 23, 30)},
        # 22:30Z on the 1st is still the 1st locally
        {"status": "active", "created_at": datetime(2026, 3, 1, 22, 30)},
        {"status": "active", "created_at": "2026-03-02T11:00:00Z"},
    ]
    stats = aggregate_batch_stats(batches, now=NOW, policy=POLICY)
    assert stats.today_batches == 2


def test_per_shift_breakdown():
    batches = [
        {"status": "completed", "shift": "morning", "actual_quantity": 10},
        {"status": "active", "shift": "morning", "actual_quantity": 5},
        {"status": "completed", "shift": "night", "actual_quantity": 7},
        {"status": "cancelled", "shift": "night", "actual_quantity": 0},
    ]
    stats = aggregate_batch_stats(batches, now=NOW, policy=POLICY, shift=None)

    assert stats.shift == "all"
    assert stats.cancelled_batches == 1
    assert stats.by_shift["morning"] == {"total": 2, "completed": 1, "actual_quantity": 15}
    assert stats.by_shift["night"] == {"total": 2, "completed": 1, "actual_quantity": 7}


def test_aggregation_is_idempotent_and_order_independent():
    batches = [
        {"status": s, "shift": sh, "target_quantity": t, "actual_quantity": a}
        for s, sh, t, a in [
            ("completed", "morning", 10, 8),
            ("active", "night", 5, 0),
            ("cancelled", "morning", 7, 1),
            ("completed", "night", 20, 25),
        ]
    ]
    first = aggregate_batch_stats(batches, now=NOW, policy=POLICY).to_dict()
    again = aggregate_batch_stats(batches, now=NOW, policy=POLICY).to_dict()

    shuffled = list(batches)
    random.Random(7).shuffle(shuffled)
    reordered = aggregate_batch_stats(shuffled, now=NOW, policy=POLICY).to_dict()

    assert first == again == reordered


class TestSales:

    def test_revenue_subtracts_per_unit_discount(self):
        assert sale_revenue({"quantity": 3, "unit_price": 500, "discount": 50}) == 1350

    def test_aggregate_sales(self):
        sales = [
            {"quantity": 3, "unit_price": 500, "discount": 50, "shift": "morning"},
            {"quantity": 2, "unit_price": 1000, "discount": 0, "shift": "night"},
        ]
        summary = aggregate_sales(sales)

        assert summary.total_sales == 2
        assert summary.total_quantity == 5
        assert summary.total_revenue == 3350
        assert summary.total_discount == 150
        assert summary.by_shift["morning"]["revenue"] == 1350
        assert summary.by_shift["night"]["quantity"] == 2

    def test_empty_sales(self):
        assert aggregate_sales([]).to_dict()["total_revenue"] == 0
