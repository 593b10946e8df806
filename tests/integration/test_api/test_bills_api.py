import pytest


@pytest.fixture
def bill_payload():
    return {
        "name": "Electricity",
        "amount": 120.5,
        "date": "2026-06-01",
        "amount_over_minimum": 20,
    }


@pytest.mark.integration
class TestBillsAPI:
    """Integration tests for bill endpoints."""

    def test_create_and_get_bill(self, client, auth_headers, bill_payload):
        created = client.post("/api/v1/bills", headers=auth_headers, json=bill_payload)

        assert created.status_code == 201
        data = created.json()["data"]
        assert data["name"] == "Electricity"
        assert data["amount"] == 120.5
        assert data["amount_over_minimum"] == 20
        assert data["household_id"] is None
        assert data["is_paid"] is False

        fetched = client.get(f"/api/v1/bills/{data['id']}", headers=auth_headers)
        assert fetched.status_code == 200
        assert fetched.json()["data"]["uuid"] == data["uuid"]

    def test_bills_require_authentication(self, client, bill_payload):
        assert client.get("/api/v1/bills").status_code == 401
        assert client.post("/api/v1/bills", json=bill_payload).status_code == 401

    def test_name_length_limit(self, client, auth_headers, bill_payload):
        ok = client.post("/api/v1/bills", headers=auth_headers, json={**bill_payload, "name": "n" * 200})
        too_long = client.post("/api/v1/bills", headers=auth_headers, json={**bill_payload, "name": "n" * 201})

        assert ok.status_code == 201
        assert too_long.status_code == 422
        assert too_long.json()["error"]["reason"] == "invalid_input"

    def test_negative_amount_rejected(self, client, auth_headers, bill_payload):
        response = client.post("/api/v1/bills", headers=auth_headers, json={**bill_payload, "amount": -5})

        assert response.status_code == 422

    def test_mark_paid_sets_paid_date(self, client, auth_headers, bill_payload):
        bill_id = client.post("/api/v1/bills", headers=auth_headers, json=bill_payload).json()["data"]["id"]

        response = client.put(
            f"/api/v1/bills/{bill_id}",
            headers=auth_headers,
            json={**bill_payload, "is_paid": True, "paid_date": "2026-06-03"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["is_paid"] is True
        assert response.json()["data"]["paid_date"] == "2026-06-03"

    def test_other_users_bills_are_not_found(self, client, make_user, auth_headers_for, bill_payload):
        make_user("alice")
        make_user("mallory")
        alice = auth_headers_for("alice")
        mallory = auth_headers_for("mallory")
        bill_id = client.post("/api/v1/bills", headers=alice, json=bill_payload).json()["data"]["id"]

        assert client.get(f"/api/v1/bills/{bill_id}", headers=mallory).status_code == 404
        assert client.put(f"/api/v1/bills/{bill_id}", headers=mallory, json=bill_payload).status_code == 404
        assert client.delete(f"/api/v1/bills/{bill_id}", headers=mallory).status_code == 404
        assert client.get("/api/v1/bills", headers=mallory).json()["data"] == []
        assert client.get(f"/api/v1/bills/{bill_id}", headers=alice).status_code == 200

    def test_delete_bill(self, client, auth_headers, bill_payload):
        bill_id = client.post("/api/v1/bills", headers=auth_headers, json=bill_payload).json()["data"]["id"]

        response = client.delete(f"/api/v1/bills/{bill_id}", headers=auth_headers)

        assert response.status_code == 200
        assert client.get(f"/api/v1/bills/{bill_id}", headers=auth_headers).status_code == 404


@pytest.mark.integration
class TestHealthAPI:
    def test_root_and_health(self, client):
        assert client.get("/").json()["success"] is True
        health = client.get("/health")
        assert health.status_code == 200
        assert health.json()["data"]["status"] == "healthy"

    def test_health_reports_unavailable_database(self, client):
        from sqlalchemy.exc import OperationalError
        from app.database import get_db
        from app.main import app

        class UnreachableSession:
            def execute(self, *args, **kwargs):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        app.dependency_overrides[get_db] = lambda: UnreachableSession()

        response = client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error"]["reason"] == "internal_error"
        assert "connection refused" not in body["error"]["message"]
