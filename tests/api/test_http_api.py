from __future__ import annotations

import pytest

from src.worktrack.worktrack.main import create_app

PASSWORD = "Secret123"


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)
    return app.test_client()


def _register(client, email, full_name="Some Body"):
    resp = client.post("/api/auth/register", json={"email": email, "password": PASSWORD, "full_name": full_name})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_unknown_endpoint_is_json_404(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Endpoint not found"}


def test_register_login_and_me(client):
    first = _register(client, "boss@example.com", "Big Boss")
    assert first["user"]["role"] == "admin"
    assert "password_hash" not in first["user"]

    resp = client.post("/api/auth/login", json={"email": "boss@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    me = client.get("/api/auth/me", headers=_auth(token))
    assert me.status_code == 200
    assert me.get_json()["user"]["email"] == "boss@example.com"


def test_missing_and_bad_tokens(client):
    assert client.get("/api/auth/me").get_json() == {"error": "Unauthorized"}
    assert client.get("/api/auth/me").status_code == 401

    resp = client.get("/api/auth/me", headers=_auth("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid token"}


def test_bad_credentials_map_to_401(client):
    _register(client, "boss@example.com")
    resp = client.post("/api/auth/login", json={"email": "boss@example.com", "password": "Wrong1234"})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid credentials"}


def test_domain_errors_map_to_status_codes(client):
    admin = _register(client, "boss@example.com")
    employee = _register(client, "worker@example.com")

    dup = client.post("/api/auth/register", json={"email": "worker@example.com", "password": PASSWORD, "full_name": "Dup"})
    assert dup.status_code == 409

    invalid = client.post("/api/auth/register", json={"email": "bad", "password": PASSWORD, "full_name": "Bad"})
    assert invalid.status_code == 400

    forbidden = client.get("/api/dashboard/admin", headers=_auth(employee["token"]))
    assert forbidden.status_code == 403

    missing = client.get("/api/projects/999", headers=_auth(admin["token"]))
    assert missing.status_code == 404


def test_non_object_body_is_rejected(client):
    resp = client.post("/api/auth/register", json=["not", "an", "object"])
    assert resp.status_code == 400


def test_access_request_flow(client):
    admin = _register(client, "boss@example.com")
    employee = _register(client, "worker@example.com")

    created = client.post("/api/projects", json={"name": "Apollo"}, headers=_auth(admin["token"]))
    assert created.status_code == 201
    project_id = created.get_json()["project"]["project_id"]
    assert created.get_json()["project"]["status"] == "active"

    submitted = client.post(
        "/api/project-access-requests", json={"project_id": project_id}, headers=_auth(employee["token"])
    )
    assert submitted.status_code == 201
    request_id = submitted.get_json()["request"]["request_id"]

    approved = client.put(f"/api/project-access-requests/{request_id}/approve", headers=_auth(admin["token"]))
    assert approved.status_code == 200
    assert approved.get_json()["request"]["status"] == "approved"

    again = client.put(f"/api/project-access-requests/{request_id}/reject", headers=_auth(admin["token"]))
    assert again.status_code == 409

    timer = client.post(
        "/api/time-entries/start",
        json={"project_id": project_id, "task_description": "Coding"},
        headers=_auth(employee["token"]),
    )
    assert timer.status_code == 201
    assert timer.get_json()["entry"]["project_name"] == "Apollo"

    active = client.get("/api/time-entries/active", headers=_auth(employee["token"]))
    assert active.status_code == 200


def test_report_submission_keeps_hours(client):
    employee = _register(client, "boss@example.com")
    resp = client.post(
        "/api/reports",
        json={"tasks_completed": ["Wrote docs"], "hours_worked": 7.5},
        headers=_auth(employee["token"]),
    )
    assert resp.status_code == 201
    assert resp.get_json()["report"]["hours_worked"] == 7.5

    edit = client.put(
        f"/api/reports/{resp.get_json()['report']['report_id']}",
        json={"tasks_completed": ["Changed"], "hours_worked": 8},
        headers=_auth(employee["token"]),
    )
    assert edit.status_code == 403
