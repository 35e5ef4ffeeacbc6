"""
Sales endpoints and derived inventory.
"""

from sqlalchemy.exc import OperationalError

from bakehouse.models import Activity, SalesLog
from bakehouse.services import sales_service


def _sell(client, headers, bread_type_id, quantity=3, **extra):
    body = {"bread_type_id": bread_type_id, "quantity": quantity, "shift": "morning"}
    body.update(extra)
    return client.post("/api/sales", json=body, headers=headers)


def test_record_sale_defaults_unit_price(client, rep_headers, bread_type):
    resp = _sell(client, rep_headers, bread_type.id)
    assert resp.status_code == 201, resp.json
    assert resp.json["unit_price"] == 1500
    assert resp.json["discount"] == 0


def test_record_sale_with_discount(client, rep_headers, bread_type):
    resp = _sell(client, rep_headers, bread_type.id, quantity=2, unit_price=1000, discount=100)
    assert resp.status_code == 201
    summary = client.get("/api/sales/summary", headers=rep_headers).json
    assert summary["total_quantity"] == 2
    assert summary["total_revenue"] == 1800
    assert summary["total_discount"] == 200


def test_sale_logs_activity(client, rep_headers, bread_type, db_session):
    _sell(client, rep_headers, bread_type.id)
    event = db_session.query(Activity).filter_by(activity_type="sale").one()
    assert event.message == "Recorded sale: 3x Family Loaf"


def test_zero_quantity_rejected(client, rep_headers, bread_type):
    resp = _sell(client, rep_headers, bread_type.id, quantity=0)
    assert resp.status_code == 400


def test_negative_discount_rejected(client, rep_headers, bread_type):
    assert _sell(client, rep_headers, bread_type.id, discount=-5).status_code == 400


def test_missing_shift(client, rep_headers, bread_type):
    resp = client.post("/api/sales", json={"bread_type_id": bread_type.id, "quantity": 1}, headers=rep_headers)
    assert resp.status_code == 400
    assert resp.json["error"] == "Missing required fields"


def test_sales_rep_sees_only_own(client, rep_headers, manager_headers, bread_type):
    _sell(client, rep_headers, bread_type.id)
    _sell(client, manager_headers, bread_type.id)

    assert client.get("/api/sales", headers=rep_headers).json["count"] == 1
    assert client.get("/api/sales", headers=manager_headers).json["count"] == 2


def test_bad_date_filter(client, rep_headers, db_session):
    resp = client.get("/api/sales?date=yesterday", headers=rep_headers)
    assert resp.status_code == 400


def test_clear_shift_removes_only_callers_logs(client, rep_headers, manager_headers, sales_rep, bread_type, db_session):
    _sell(client, rep_headers, bread_type.id)
    _sell(client, rep_headers, bread_type.id, shift="night")
    _sell(client, manager_headers, bread_type.id)

    resp = client.delete("/api/sales?shift=morning", headers=rep_headers)
    assert resp.status_code == 200
    assert resp.json == {"deleted": 1, "shift": "morning"}

    remaining = db_session.query(SalesLog).all()
    assert len(remaining) == 2
    assert {(s.recorded_by == sales_rep.id, s.shift) for s in remaining} == {(True, "night"), (False, "morning")}


def test_clear_all_users_is_owner_only(client, rep_headers, manager_headers, owner_headers, bread_type, db_session):
    _sell(client, rep_headers, bread_type.id)
    _sell(client, manager_headers, bread_type.id)

    assert client.delete("/api/sales?shift=morning&all=true", headers=manager_headers).status_code == 403

    resp = client.delete("/api/sales?shift=morning&all=true", headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json["deleted"] == 2
    assert db_session.query(SalesLog).count() == 0


def test_clear_shift_requires_valid_shift(client, manager_headers):
    assert client.delete("/api/sales", headers=manager_headers).status_code == 400


def test_inventory_reflects_batches_and_sales(client, manager_headers, rep_headers, bread_type):
    shift = client.get("/api/shift/current").json["shift"]

    client.post(
        "/api/batches",
        json={"bread_type_id": bread_type.id, "actual_quantity": 20, "shift": shift},
        headers=manager_headers,
    )
    _sell(client, rep_headers, bread_type.id, quantity=5, shift=shift)

    resp = client.get(f"/api/inventory/shift?shift={shift}", headers=rep_headers)
    assert resp.status_code == 200
    item = resp.json["items"][0]
    assert item["produced"] == 20
    assert item["sold"] == 5
    assert item["available"] == 15


def test_database_failure_returns_upstream_error(client, rep_headers, bread_type, monkeypatch):
    def locked(**kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(sales_service, "record_sale", locked)

    resp = _sell(client, rep_headers, bread_type.id)
    assert resp.status_code == 500
    assert resp.json["error"] == "Failed to record sale"
    assert "database is locked" in resp.json["details"]
