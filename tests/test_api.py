import json
import logging
import re
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

import config
from conftest import make_descriptor, run_sql
from main import create_app
from services.user_service import UserRepository


class TestHealthEndpoint:
    """Tests for health check endpoint"""

    def test_health_check(self, client):
        """Test health endpoint returns OK"""
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_cors_allows_frontend_origin(self, client):
        response = client.get("/api/health", headers={"Origin": config.FRONTEND_URL})
        assert response.headers["access-control-allow-origin"] == config.FRONTEND_URL

    def test_cors_rejects_other_methods(self, client):
        response = client.options(
            "/api/users",
            headers={"Origin": config.FRONTEND_URL, "Access-Control-Request-Method": "PATCH"},
        )
        assert response.status_code == 400


class TestCreateUser:
    """Tests for POST /api/users"""

    def test_create_user(self, client, user_payload):
        response = client.post("/api/users", json=user_payload)
        assert response.status_code == 201
        assert response.json()["message"] == "User created"

    @pytest.mark.parametrize("field", ["id", "name", "photo"])
    def test_missing_required_field(self, client, user_payload, field):
        del user_payload[field]
        response = client.post("/api/users", json=user_payload)
        assert response.status_code == 400

    def test_empty_required_field(self, client, user_payload):
        user_payload["name"] = ""
        response = client.post("/api/users", json=user_payload)
        assert response.status_code == 400

    def test_invalid_descriptor(self, client, user_payload):
        user_payload["descriptor"] = make_descriptor(127)
        response = client.post("/api/users", json=user_payload)
        assert response.status_code == 400
        assert client.get(f"/api/users/{user_payload['id']}").status_code == 404

    def test_duplicate_id_conflicts(self, client, user_payload):
        assert client.post("/api/users", json=user_payload).status_code == 201

        duplicate = dict(user_payload, name="Someone Else")
        response = client.post("/api/users", json=duplicate)
        assert response.status_code == 409

        # Existing row untouched
        assert client.get(f"/api/users/{user_payload['id']}").json()["name"] == user_payload["name"]

    def test_without_descriptor_or_metadata(self, client):
        response = client.post("/api/users", json={"id": "EMP002", "name": "B", "photo": "p.jpg", "rank": ""})
        assert response.status_code == 201

        user = client.get("/api/users/EMP002").json()
        assert user["descriptor"] is None
        assert user["rank"] is None
        assert user["phone"] is None

    def test_descriptor_as_json_text(self, client, user_payload):
        user_payload["descriptor"] = json.dumps(make_descriptor())
        assert client.post("/api/users", json=user_payload).status_code == 201

        user = client.get(f"/api/users/{user_payload['id']}").json()
        assert user["descriptor"] == make_descriptor()

    def test_numeric_id_is_stored_as_text(self, client, user_payload):
        user_payload["id"] = 42
        assert client.post("/api/users", json=user_payload).status_code == 201
        assert client.get("/api/users/42").json()["id"] == "42"

    def test_descriptor_int_too_large_for_float(self, client, user_payload):
        user_payload["descriptor"] = [10 ** 400] * 128
        response = client.post("/api/users", json=user_payload)
        assert response.status_code == 400

    def test_malformed_json_is_bad_request(self, client):
        response = client.post(
            "/api/users", content="{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400


class TestGetUsers:
    """Tests for GET /api/users and GET /api/users/{id}"""

    def test_get_user_with_descriptor(self, client, user_payload):
        client.post("/api/users", json=user_payload)

        response = client.get(f"/api/users/{user_payload['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["descriptor"] == user_payload["descriptor"]
        assert data["idCard"] == user_payload["idCard"]

    def test_get_nonexistent_user(self, client):
        response = client.get("/api/users/nonexistent_user_123")
        assert response.status_code == 404

    def test_list_never_includes_descriptor(self, client, user_payload):
        client.post("/api/users", json=user_payload)
        client.post("/api/users", json={"id": "EMP002", "name": "B", "photo": "p.jpg"})

        response = client.get("/api/users")
        assert response.status_code == 200
        users = {u["id"]: u for u in response.json()}
        assert len(users) == 2
        assert all(u["descriptor"] is None for u in users.values())
        assert users["EMP001"]["has_descriptor"] is True
        assert users["EMP002"]["has_descriptor"] is False

    def test_corrupted_descriptor_is_nulled(self, client, db_path, user_payload, caplog):
        client.post("/api/users", json=user_payload)
        run_sql(db_path, "UPDATE users SET descriptor = ? WHERE id = ?", ("[0.1, 0.2", user_payload["id"]))

        with caplog.at_level(logging.WARNING, logger="services.user_service"):
            response = client.get(f"/api/users/{user_payload['id']}")

        assert response.status_code == 200
        assert response.json()["descriptor"] is None
        assert any(user_payload["id"] in r.getMessage() for r in caplog.records)

    def test_oversized_stored_descriptor_is_nulled(self, client, db_path, user_payload):
        client.post("/api/users", json=user_payload)
        run_sql(
            db_path, "UPDATE users SET descriptor = ? WHERE id = ?",
            (json.dumps([10 ** 400] * 128), user_payload["id"]),
        )

        response = client.get(f"/api/users/{user_payload['id']}")
        assert response.status_code == 200
        assert response.json()["descriptor"] is None

    def test_storage_error_is_server_error(self, client, monkeypatch):
        async def broken(self):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(UserRepository, "list_summaries", broken)
        response = client.get("/api/users")
        assert response.status_code == 500
        assert "connection lost" in response.json()["detail"]


class TestUpdateUser:
    """Tests for PUT /api/users/{id}"""

    def test_update_keeps_unspecified_fields(self, client, user_payload):
        client.post("/api/users", json=user_payload)

        response = client.put(f"/api/users/{user_payload['id']}", json={"name": "Renamed"})
        assert response.status_code == 200

        user = client.get(f"/api/users/{user_payload['id']}").json()
        assert user["name"] == "Renamed"
        assert user["phone"] == user_payload["phone"]
        assert user["descriptor"] == user_payload["descriptor"]

    def test_null_does_not_clear_field(self, client, user_payload):
        client.post("/api/users", json=user_payload)

        client.put(f"/api/users/{user_payload['id']}", json={"phone": None, "descriptor": None})

        user = client.get(f"/api/users/{user_payload['id']}").json()
        assert user["phone"] == user_payload["phone"]
        assert user["descriptor"] == user_payload["descriptor"]

    def test_update_descriptor(self, client, user_payload):
        client.post("/api/users", json=user_payload)
        new_descriptor = [0.5] * 128

        response = client.put(f"/api/users/{user_payload['id']}", json={"descriptor": new_descriptor})
        assert response.status_code == 200
        assert client.get(f"/api/users/{user_payload['id']}").json()["descriptor"] == new_descriptor

    def test_invalid_descriptor_rejected(self, client, user_payload):
        client.post("/api/users", json=user_payload)

        response = client.put(
            f"/api/users/{user_payload['id']}", json={"name": "X", "descriptor": ["a"] * 128}
        )
        assert response.status_code == 400
        assert client.get(f"/api/users/{user_payload['id']}").json()["name"] == user_payload["name"]

    def test_descriptor_int_too_large_for_float_rejected(self, client, user_payload):
        client.post("/api/users", json=user_payload)

        response = client.put(f"/api/users/{user_payload['id']}", json={"descriptor": [10 ** 400] * 128})
        assert response.status_code == 400
        assert client.get(f"/api/users/{user_payload['id']}").json()["descriptor"] == user_payload["descriptor"]

    def test_update_nonexistent_user(self, client):
        response = client.put("/api/users/ghost", json={"name": "Nobody"})
        assert response.status_code == 404

    def test_empty_update(self, client, user_payload):
        client.post("/api/users", json=user_payload)
        assert client.put(f"/api/users/{user_payload['id']}", json={}).status_code == 200
        assert client.put("/api/users/ghost", json={}).status_code == 404


class TestDeleteUser:
    """Tests for DELETE /api/users/{id}"""

    def test_delete_user(self, client, user_payload):
        client.post("/api/users", json=user_payload)

        response = client.delete(f"/api/users/{user_payload['id']}")
        assert response.status_code == 200
        assert client.get(f"/api/users/{user_payload['id']}").status_code == 404

    def test_delete_nonexistent_user(self, client, user_payload):
        client.post("/api/users", json=user_payload)

        response = client.delete("/api/users/nonexistent_user_123")
        assert response.status_code == 404
        assert len(client.get("/api/users").json()) == 1


class TestLogs:
    """Tests for /api/logs"""

    def test_create_log(self, client):
        payload = {"userId": "EMP001", "userName": "Nguyen Van A", "status": "success"}
        response = client.post("/api/logs", json=payload)
        assert response.status_code == 201

        logs = client.get("/api/logs").json()
        assert len(logs) == 1
        assert logs[0]["user_id"] == "EMP001"
        assert logs[0]["status"] == "success"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", logs[0]["timestamp"])

    @pytest.mark.parametrize("field", ["userId", "userName", "status"])
    def test_missing_field(self, client, field):
        payload = {"userId": "EMP001", "userName": "A", "status": "failure"}
        del payload[field]
        assert client.post("/api/logs", json=payload).status_code == 400

    def test_empty_status(self, client):
        payload = {"userId": "EMP001", "userName": "A", "status": ""}
        assert client.post("/api/logs", json=payload).status_code == 400

    def test_any_status_is_accepted(self, client):
        payload = {"userId": "EMP001", "userName": "A", "status": "spoof_suspected"}
        assert client.post("/api/logs", json=payload).status_code == 201

    def test_list_is_capped_and_newest_first(self, client, db_path):
        start = datetime(2026, 1, 1, 8, 0, 0)
        rows = [
            ((start + timedelta(minutes=i)).strftime("%Y-%m-%d %H:%M:%S"), f"EMP{i:03d}", f"User {i}", "success")
            for i in range(105)
        ]
        run_sql(db_path, "INSERT INTO logs (timestamp, user_id, user_name, status) VALUES (?, ?, ?, ?)", rows)

        logs = client.get("/api/logs").json()
        assert len(logs) == 100
        assert logs[0]["user_id"] == "EMP104"
        timestamps = [entry["timestamp"] for entry in logs]
        assert all(a > b for a, b in zip(timestamps, timestamps[1:]))


class TestServer:
    """Tests for body limits and static assets"""

    def test_oversized_body_rejected(self, database, monkeypatch, user_payload):
        monkeypatch.setattr(config, "MAX_BODY_BYTES", 1024)
        app = create_app(database)

        user_payload["photo"] = "x" * 4096
        with TestClient(app) as client:
            response = client.post("/api/users", json=user_payload)
            assert response.status_code == 413
            assert client.get("/api/users").json() == []

    def test_oversized_chunked_body_rejected(self, database, monkeypatch):
        monkeypatch.setattr(config, "MAX_BODY_BYTES", 1024)
        app = create_app(database)

        def chunks():
            yield b'{"id": "EMP001", "name": "A", "photo": "'
            for _ in range(5):
                yield b"x" * 1024
            yield b'"}'

        with TestClient(app) as client:
            response = client.post("/api/users", content=chunks(), headers={"Content-Type": "application/json"})
            assert response.status_code == 413
            assert client.get("/api/users").json() == []

    def test_static_assets_served(self, database, monkeypatch, tmp_path):
        frontend = tmp_path / "frontend"
        frontend.mkdir()
        (frontend / "login.html").write_text("<html>login</html>")
        monkeypatch.setattr(config, "STATIC_DIR", frontend)
        app = create_app(database)

        with TestClient(app) as client:
            response = client.get("/login.html")
            assert response.status_code == 200
            assert "login" in response.text
            assert client.get("/api/health").json() == {"status": "healthy"}
