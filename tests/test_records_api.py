"""API tests for booking records, including the admission gate."""

from unittest.mock import patch

import pytest

from salon.app.schemas import RecordStatus


def ip(n: int) -> dict:
    return {"X-Forwarded-For": f"10.1.0.{n}"}


class TestCreateRecord:

    def test_human_booking_is_created(self, client, human_form):
        resp = client.post("/api/records", json=human_form, headers=ip(1))
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"].startswith("record-")
        assert data["clientName"] == "Anna"
        assert data["status"] == "new"
        assert data["source"] == "client"
        assert "_antiSpam" not in data
        assert "duringVacation" not in data

        listed = client.get("/api/records").json()
        assert [r["id"] for r in listed] == [data["id"]]

    def test_sixth_booking_from_same_ip_is_rate_limited(self, client, human_form):
        for _ in range(5):
            assert client.post("/api/records", json=human_form, headers=ip(2)).status_code == 201

        resp = client.post("/api/records", json=human_form, headers=ip(2))
        assert resp.status_code == 429
        body = resp.json()
        assert body["error"] == "Too many requests. Please try again later."
        assert 0 < body["retryAfter"] <= 900
        assert resp.headers["Retry-After"] == str(body["retryAfter"])

        assert client.post("/api/records", json=human_form, headers=ip(3)).status_code == 201

    def test_fast_submission_rejected_generically(self, client, human_form):
        human_form["_antiSpam"]["timeSpent"] = 500
        resp = client.post("/api/records", json=human_form, headers=ip(4))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request"}
        assert client.get("/api/records").json() == []

    def test_low_activity_rejected_generically(self, client, human_form):
        human_form["_antiSpam"]["userActivity"] = {"clicks": 1, "focuses": 0}
        resp = client.post("/api/records", json=human_form, headers=ip(5))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request"}

    def test_malformed_metadata_rejected(self, client, human_form):
        human_form["_antiSpam"] = "definitely human"
        resp = client.post("/api/records", json=human_form, headers=ip(6))
        assert resp.json() == {"error": "Invalid request"}

    def test_booking_without_metadata_is_accepted(self, client, human_form):
        del human_form["_antiSpam"]
        assert client.post("/api/records", json=human_form, headers=ip(7)).status_code == 201

    def test_rate_limit_applies_before_validation(self, client):
        for _ in range(5):
            assert client.post("/api/records", json={}, headers=ip(8)).status_code == 400
        assert client.post("/api/records", json={}, headers=ip(8)).status_code == 429

    def test_missing_required_fields(self, client, human_form):
        del human_form["phone"]
        resp = client.post("/api/records", json=human_form, headers=ip(9))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing required fields"}

    def test_blank_required_field(self, client, human_form):
        human_form["service"] = "   "
        resp = client.post("/api/records", json=human_form, headers=ip(10))
        assert resp.json() == {"error": "Missing required fields"}

    def test_invalid_date(self, client, human_form):
        human_form["date"] = "10.05.2030"
        resp = client.post("/api/records", json=human_form, headers=ip(11))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid date format"}

    def test_invalid_time(self, client, human_form):
        human_form["time"] = "10am"
        resp = client.post("/api/records", json=human_form, headers=ip(12))
        assert resp.json() == {"error": "Invalid time format"}

    def test_time_is_optional(self, client, human_form):
        del human_form["time"]
        resp = client.post("/api/records", json=human_form, headers=ip(13))
        assert resp.status_code == 201
        assert resp.json()["time"] == ""

    @pytest.mark.parametrize("n,value", [(30, ""), (31, None), (32, "  ")])
    def test_empty_date_is_missing(self, client, human_form, n, value):
        human_form["date"] = value
        resp = client.post("/api/records", json=human_form, headers=ip(n))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing required fields"}

    def test_null_time_is_accepted(self, client, human_form):
        human_form["time"] = None
        resp = client.post("/api/records", json=human_form, headers=ip(33))
        assert resp.status_code == 201
        assert resp.json()["time"] == ""

    def test_negative_amount(self, client, human_form):
        human_form["amount"] = -10
        resp = client.post("/api/records", json=human_form, headers=ip(14))
        assert resp.json() == {"error": "Invalid amount value"}

    def test_not_json(self, client):
        resp = client.post(
            "/api/records", content=b"name=Anna", headers={**ip(15), "Content-Type": "text/plain"}
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing required fields"}

    def test_new_booking_triggers_email(self, client, human_form):
        human_form["duringVacation"] = True
        notifier = client.app.state.notifier
        with patch.object(notifier, "notify_new_booking") as notify:
            resp = client.post("/api/records", json=human_form, headers=ip(16))

        assert resp.status_code == 201
        record, = notify.call_args.args
        assert record.id == resp.json()["id"]
        assert notify.call_args.kwargs == {"during_vacation": True}


class TestAdminRecords:

    def _create(self, client, human_form, n):
        return client.post("/api/records", json=human_form, headers=ip(100 + n)).json()

    def test_update_requires_admin(self, client, human_form):
        record = self._create(client, human_form, 1)
        resp = client.put(f"/api/records/{record['id']}", json={"comment": "x"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    def test_update_and_confirm_sends_sms(self, admin_client, human_form):
        record = self._create(admin_client, human_form, 2)
        notifier = admin_client.app.state.notifier

        with patch.object(notifier, "notify_confirmed") as notify:
            resp = admin_client.put(
                f"/api/records/{record['id']}",
                json={"status": "confirmed", "amount": 85, "paymentMethod": "card"},
            )
            assert resp.status_code == 200
            assert notify.call_count == 1

            admin_client.put(f"/api/records/{record['id']}", json={"comment": "again"})
            assert notify.call_count == 1

        data = resp.json()
        assert data["status"] == RecordStatus.CONFIRMED.value
        assert data["amount"] == 85
        assert data["paymentMethod"] == "card"
        assert data["clientName"] == "Anna"

    def test_update_without_amount_keeps_it(self, admin_client, human_form):
        record = self._create(admin_client, human_form, 3)
        admin_client.put(f"/api/records/{record['id']}", json={"amount": 50, "paymentMethod": "cash"})
        resp = admin_client.put(f"/api/records/{record['id']}", json={"amount": None, "time": "12:00"})
        assert resp.json()["amount"] == 50
        assert resp.json()["paymentMethod"] == "cash"

    def test_update_invalid_amount(self, admin_client, human_form):
        record = self._create(admin_client, human_form, 4)
        resp = admin_client.put(f"/api/records/{record['id']}", json={"amount": -1})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid amount value"}

    def test_update_missing_record(self, admin_client):
        resp = admin_client.put("/api/records/record-404", json={"comment": "x"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Record with id record-404 not found"}

    def test_delete(self, admin_client, human_form):
        record = self._create(admin_client, human_form, 5)
        resp = admin_client.delete(f"/api/records/{record['id']}")
        assert resp.json() == {"success": True}
        assert admin_client.get("/api/records").json() == []

    def test_bearer_token_also_accepted(self, client, human_form):
        from salon.app.middleware.auth import issue_admin_token

        record = self._create(client, human_form, 6)
        resp = client.delete(
            f"/api/records/{record['id']}",
            headers={"Authorization": f"Bearer {issue_admin_token()}"},
        )
        assert resp.status_code == 200
