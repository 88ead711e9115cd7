"""Every failure leaves the API in the same envelope."""

from conftest import bearer

from app.core.config import get_settings
from app.main import app
from app.services.dashboard_service import get_dashboard_service


class BrokenDashboard:
    def global_stats(self):
        raise RuntimeError("database exploded")


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/v1/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found", "errors": []}


def test_body_validation_lists_fields(client):
    response = client.post("/api/v1/user/login", json={"identifier": "x"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid request data"
    fields = {err["field"] for err in body["errors"]}
    assert "password" in fields
    assert "role" in fields


def test_unexpected_error_is_generic_500(client, student):
    app.dependency_overrides[get_dashboard_service] = BrokenDashboard
    response = client.get("/api/v1/dashboard/global-stats", headers=bearer(student))
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error", "errors": []}
    assert "exploded" not in response.text


def test_missing_token_secret_is_server_error(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "access_token_secret", "")
    response = client.post("/api/v1/user/register", data={
        "fullName": "Asha Verma",
        "email": "asha@workify.io",
        "password": "secret123",
        "phoneNumber": "9876543210",
        "role": "student",
    })
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server configuration error", "errors": []}
    assert "secret" not in response.text


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["mongodb"] in ("connected", "disconnected")


def test_failed_token_issue_leaves_no_account(client, monkeypatch, mongo):
    form = {
        "fullName": "Asha Verma",
        "email": "asha@workify.io",
        "password": "secret123",
        "phoneNumber": "9876543210",
        "role": "student",
    }
    monkeypatch.setattr(get_settings(), "access_token_secret", "")
    assert client.post("/api/v1/user/register", data=form).status_code == 500
    assert mongo["users"].count_documents({}) == 0

    monkeypatch.undo()
    response = client.post("/api/v1/user/register", data=form)
    assert response.status_code == 201
    assert mongo["users"].count_documents({}) == 1
