"""Health and VAPID public key endpoints."""
from fastapi.testclient import TestClient

from courier_push.main import app
from courier_push.services.dispatcher import VapidConfig


def test_health_returns_ok(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j.get("status") == "ok"
    assert j.get("push_configured") is True
    assert j.get("database") == "ok"


def test_vapid_public_key(client: TestClient):
    r = client.get("/vapid-public-key")
    assert r.status_code == 200
    assert r.json() == {"publicKey": "BTestPublicKey"}


def test_vapid_public_key_missing(client: TestClient):
    app.state.vapid = VapidConfig(public_key="", private_key="", subject="mailto:ops@example.com")
    r = client.get("/vapid-public-key")
    assert r.status_code == 503
    assert r.json().get("error") == "Push not configured"


def test_health_reports_database_error(client: TestClient, monkeypatch):
    def _down():
        raise OSError("connection refused")

    monkeypatch.setattr("courier_push.main.database_ok", _down)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("database") == "error"
