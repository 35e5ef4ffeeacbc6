"""
Batch endpoints, end to end through the test client.
"""

from sqlalchemy.exc import OperationalError

from bakehouse.models import Activity, Batch
from bakehouse.services import activity_service


def _create(client, headers, bread_type_id, **overrides):
    body = {"bread_type_id": bread_type_id, "actual_quantity": 50, "shift": "morning"}
    body.update(overrides)
    return client.post("/api/batches", json=body, headers=headers)


class TestCreate:

    def test_numbers_001_then_002(self, client, manager_headers, bread_type):
        first = _create(client, manager_headers, bread_type.id)
        assert first.status_code == 201, first.json
        assert first.json["batch_number"] == "001"
        assert first.json["bread_type"] == "Family Loaf"

        second = _create(client, manager_headers, bread_type.id)
        assert second.status_code == 201
        assert second.json["batch_number"] == "002"

    def test_missing_fields(self, client, manager_headers, bread_type):
        resp = client.post("/api/batches", json={"bread_type_id": bread_type.id}, headers=manager_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Missing required fields"
        assert "shift" in resp.json["details"]

    def test_invalid_shift(self, client, manager_headers, bread_type):
        resp = _create(client, manager_headers, bread_type.id, shift="afternoon")
        assert resp.status_code == 400
        assert resp.json["error"] == "Valid shift (morning or night) is required"

    def test_decimal_quantity_rejected(self, client, manager_headers, bread_type):
        resp = _create(client, manager_headers, bread_type.id, actual_quantity=2.5)
        assert resp.status_code == 400

    def test_unknown_bread_type(self, client, manager_headers, db_session):
        resp = _create(client, manager_headers, 9999)
        assert resp.status_code == 404

    def test_logs_activity(self, client, manager_headers, bread_type, db_session):
        _create(client, manager_headers, bread_type.id)
        batch_events = db_session.query(Activity).filter_by(activity_type="batch").all()
        assert len(batch_events) == 1
        assert batch_events[0].message == "Created batch: 50x Family Loaf"

    def test_activity_failure_does_not_fail_creation(self, client, manager_headers, bread_type, db_session, monkeypatch):
        def boom(activity):
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr(activity_service, "_persist", boom)

        resp = _create(client, manager_headers, bread_type.id)
        assert resp.status_code == 201
        assert db_session.query(Batch).count() == 1

    def test_sales_rep_cannot_create(self, client, rep_headers, bread_type):
        assert _create(client, rep_headers, bread_type.id).status_code == 403


class TestReadAndStats:

    def test_list_filters(self, client, manager_headers, bread_type):
        _create(client, manager_headers, bread_type.id)
        _create(client, manager_headers, bread_type.id, shift="night")

        resp = client.get("/api/batches?shift=night", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1
        assert resp.json["items"][0]["shift"] == "night"

    def test_list_is_callers_own(self, client, manager_headers, owner_headers, rep_headers, bread_type):
        _create(client, manager_headers, bread_type.id)

        assert client.get("/api/batches", headers=manager_headers).json["count"] == 1
        assert client.get("/api/batches", headers=owner_headers).json["count"] == 0
        assert client.get("/api/batches", headers=rep_headers).json["count"] == 0

        _create(client, owner_headers, bread_type.id)
        assert client.get("/api/batches", headers=owner_headers).json["count"] == 1

    def test_stats_cover_all_creators(self, client, manager_headers, owner_headers, bread_type):
        _create(client, owner_headers, bread_type.id)
        _create(client, manager_headers, bread_type.id)

        assert client.get("/api/batches/stats", headers=manager_headers).json["total_batches"] == 2

    def test_stats(self, client, manager_headers, bread_type):
        first = _create(client, manager_headers, bread_type.id, actual_quantity=8, target_quantity=10)
        _create(client, manager_headers, bread_type.id, actual_quantity=0, target_quantity=5)
        client.put(f"/api/batches/{first.json['id']}", json={"status": "completed"}, headers=manager_headers)

        stats = client.get("/api/batches/stats", headers=manager_headers).json
        assert stats["total_batches"] == 2
        assert stats["completion_rate"] == 50
        assert round(stats["efficiency_rate"], 2) == 53.33
        assert stats["today_batches"] == 2

    def test_generate_number_preview(self, client, manager_headers, bread_type):
        _create(client, manager_headers, bread_type.id)
        resp = client.get(f"/api/batches/generate-number/{bread_type.id}?shift=morning", headers=manager_headers)
        assert resp.json == {"batch_number": "002", "bread_type_id": bread_type.id, "shift": "morning"}

    def test_generate_number_defaults_to_session_shift(self, client, manager_headers, bread_type):
        resp = client.get(f"/api/batches/generate-number/{bread_type.id}", headers=manager_headers)
        assert resp.json["shift"] == "morning"
        assert resp.json["batch_number"] == "001"


class TestUpdateAndDelete:

    def test_complete_sets_end_time(self, client, manager_headers, bread_type):
        batch_id = _create(client, manager_headers, bread_type.id).json["id"]
        resp = client.put(
            f"/api/batches/{batch_id}",
            json={"status": "completed", "actual_quantity": 48},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.json["status"] == "completed"
        assert resp.json["actual_quantity"] == 48
        assert resp.json["end_time"] is not None

    def test_invalid_status(self, client, manager_headers, bread_type):
        batch_id = _create(client, manager_headers, bread_type.id).json["id"]
        resp = client.put(f"/api/batches/{batch_id}", json={"status": "burnt"}, headers=manager_headers)
        assert resp.status_code == 400

    def test_cannot_touch_another_managers_batch(self, client, owner_headers, manager_headers, bread_type):
        batch_id = _create(client, owner_headers, bread_type.id).json["id"]
        assert client.delete(f"/api/batches/{batch_id}", headers=manager_headers).status_code == 403

    def test_delete_missing(self, client, manager_headers, db_session):
        assert client.delete("/api/batches/9999", headers=manager_headers).status_code == 404

    def test_end_shift_and_verify(self, client, manager_headers, manager, bread_type, db_session):
        _create(client, manager_headers, bread_type.id)
        _create(client, manager_headers, bread_type.id)
        _create(client, manager_headers, bread_type.id, shift="night")

        resp = client.delete("/api/batches?shift=morning", headers=manager_headers)
        assert resp.status_code == 200
        assert resp.json == {"deleted": 2, "shift": "morning"}

        verify = client.get("/api/batches/verify-deletion?shift=morning", headers=manager_headers).json
        assert verify["is_deleted"] is True
        assert verify["remaining_count"] == 0
        assert verify["user_id"] == manager.id

        remaining = client.get("/api/batches/verify-deletion?shift=night", headers=manager_headers).json
        assert remaining["is_deleted"] is False
        assert remaining["remaining_count"] == 1

        assert db_session.query(Activity).filter_by(activity_type="end_shift").count() == 1

    def test_verify_other_user_requires_owner(self, client, manager_headers, owner):
        resp = client.get(f"/api/batches/verify-deletion?userId={owner.id}", headers=manager_headers)
        assert resp.status_code == 403
