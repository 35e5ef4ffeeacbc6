"""
Remaining-stock conflict detection and the check-and-write submission.
"""

from datetime import date

import pytest

from bakehouse.models import RemainingStock
from bakehouse.errors import ConflictError, NotFoundError
from bakehouse.services.conflict_service import (
    check_remaining_stock_conflicts,
    list_remaining_stock,
    normalize_candidates,
    submit_remaining_stock,
)
from bakehouse.validation import ValidationError


TODAY = date(2026, 3, 2)
YESTERDAY = date(2026, 3, 1)


def _record(db_session, bread_type, user, *, quantity, record_date, shift="morning"):
    row = RemainingStock(
        bread_type_id=bread_type.id,
        shift=shift,
        quantity=quantity,
        unit_price=bread_type.unit_price,
        record_date=record_date,
        recorded_by=user.id,
    )
    db_session.add(row)
    db_session.commit()
    return row


def _item(bread_type, quantity, shift="morning"):
    return {"bread_type_id": bread_type.id, "bread_type": bread_type.name, "shift": shift, "quantity": quantity}


class TestCheck:

    def test_prior_date_same_quantity_is_one_conflict(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY)

        result = check_remaining_stock_conflicts([_item(bread_type, 20)], today=TODAY)

        assert result.has_conflicts is True
        assert len(result.conflicts) == 1
        conflict = result.conflicts[0]
        assert conflict.identifier == "Family Loaf"
        assert conflict.quantity == 20
        assert conflict.existing_date == "2026-03-01"
        assert conflict.original_input["quantity"] == 20

    def test_identifier_resolves_name_from_id_only_item(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY)
        item = {"bread_type_id": bread_type.id, "shift": "morning", "quantity": 20}

        result = check_remaining_stock_conflicts([item], today=TODAY)

        assert result.conflicts[0].identifier == "Family Loaf"

    def test_today_record_suppresses_conflict(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY)
        _record(db_session, bread_type, sales_rep, quantity=5, record_date=TODAY)

        result = check_remaining_stock_conflicts([_item(bread_type, 20)], today=TODAY)

        assert result.has_conflicts is False
        assert result.conflicts == []

    def test_different_quantity_is_not_a_conflict(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY)
        assert not check_remaining_stock_conflicts([_item(bread_type, 21)], today=TODAY).has_conflicts

    def test_other_shift_is_not_a_conflict(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY, shift="night")
        assert not check_remaining_stock_conflicts([_item(bread_type, 20)], today=TODAY).has_conflicts

    def test_reports_most_recent_prior_date(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=date(2026, 2, 20))
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=date(2026, 2, 27))

        result = check_remaining_stock_conflicts([_item(bread_type, 20)], today=TODAY)
        assert result.conflicts[0].existing_date == "2026-02-27"

    def test_is_read_only(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY)
        check_remaining_stock_conflicts([_item(bread_type, 20)], today=TODAY)
        assert db_session.query(RemainingStock).count() == 1

    def test_to_dict_shape(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY)
        body = check_remaining_stock_conflicts([_item(bread_type, 20)], today=TODAY).to_dict()
        assert body["has_conflicts"] is True
        assert set(body["conflicts"][0]) == {"identifier", "quantity", "existing_date", "original_input"}


class TestSubmit:

    def test_conflict_blocks_write_without_confirm(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY)

        with pytest.raises(ConflictError) as exc:
            submit_remaining_stock([_item(bread_type, 20)], recorded_by=sales_rep.id, today=TODAY)

        assert exc.value.details["has_conflicts"] is True
        assert db_session.query(RemainingStock).count() == 1

    def test_confirm_writes_despite_conflict(self, db_session, sales_rep, bread_type):
        _record(db_session, bread_type, sales_rep, quantity=20, record_date=YESTERDAY)

        results = submit_remaining_stock(
            [_item(bread_type, 20)], recorded_by=sales_rep.id, confirm=True, today=TODAY
        )

        assert results == [{"bread_type_id": bread_type.id, "shift": "morning", "result": "inserted"}]
        assert len(list_remaining_stock(record_date=TODAY)) == 1

    def test_same_day_resubmission_updates_in_place(self, db_session, sales_rep, bread_type):
        submit_remaining_stock([_item(bread_type, 12)], recorded_by=sales_rep.id, today=TODAY)
        results = submit_remaining_stock([_item(bread_type, 9)], recorded_by=sales_rep.id, today=TODAY)

        assert results[0]["result"] == "updated"
        rows = list_remaining_stock(record_date=TODAY)
        assert len(rows) == 1
        assert rows[0].quantity == 9

    def test_zero_quantity_is_skipped(self, db_session, sales_rep, bread_type, other_bread_type):
        results = submit_remaining_stock(
            [_item(bread_type, 0), _item(other_bread_type, 4)], recorded_by=sales_rep.id, today=TODAY
        )

        assert [r["result"] for r in results] == ["skipped", "inserted"]
        assert db_session.query(RemainingStock).count() == 1

    def test_unit_price_defaults_to_bread_type(self, db_session, sales_rep, bread_type):
        submit_remaining_stock([_item(bread_type, 3)], recorded_by=sales_rep.id, today=TODAY)
        row = list_remaining_stock(record_date=TODAY)[0]
        assert row.unit_price == 1500
        assert row.to_dict()["total_value"] == 4500

    def test_unknown_bread_type(self, db_session, sales_rep):
        with pytest.raises(NotFoundError):
            submit_remaining_stock(
                [{"bread_type_id": 9999, "shift": "morning", "quantity": 3}],
                recorded_by=sales_rep.id, today=TODAY,
            )


class TestNormalize:

    def test_rejects_empty(self):
        with pytest.raises(ValidationError):
            normalize_candidates([])

    def test_rejects_bad_shift(self):
        with pytest.raises(ValidationError):
            normalize_candidates([{"bread_type_id": 1, "shift": "evening", "quantity": 3}])

    def test_rejects_fractional_quantity(self):
        with pytest.raises(ValidationError):
            normalize_candidates([{"bread_type_id": 1, "shift": "morning", "quantity": 2.5}])

    def test_coerces_numeric_strings(self):
        items = normalize_candidates([{"bread_type_id": "3", "shift": "night", "quantity": "7"}])
        assert items == [{"bread_type_id": 3, "shift": "night", "quantity": 7}]
