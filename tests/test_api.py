import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.errors import StorageUnavailableError
from app.core.security import hash_admin_key
from app.main import create_app
from app.services.session_service import SessionRegistry
from app.storage.memory import MemorySessionStore

from conftest import SERVER

ADMIN_KEY = "correct horse battery staple"


@pytest.fixture(scope="module")
def admin_key_hash() -> str:
    return hash_admin_key(ADMIN_KEY)


@pytest.fixture
def client(registry):
    with TestClient(create_app(registry)) as c:
        yield c


def _login(client: TestClient, **overrides):
    body = {"email": "a@x.com", "nickname": "a", "macAddress": "AA:BB"}
    body.update(overrides)
    return client.post("/api/sessions/login", json=body)


def test_welcome_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json() == {"status": "ok"}


def test_login_and_reactivate(client):
    first = _login(client)
    assert first.status_code == 200
    assert first.json()["detail"] == "Session started"
    session_id = first.json()["sessionId"]

    second = _login(client)
    assert second.status_code == 200
    assert second.json() == {
        "detail": "Session reactivated",
        "sessionId": session_id,
        "reactivated": True,
    }


@pytest.mark.parametrize("missing", ["email", "nickname", "macAddress"])
def test_login_missing_fields(client, missing):
    resp = _login(client, **{missing: ""})
    assert resp.status_code == 400


def test_malformed_body_is_bad_request(client):
    resp = client.post(
        "/api/sessions/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400


def test_status_reports_durations(client, clock):
    session_id = _login(client).json()["sessionId"]
    clock.advance(90)

    resp = client.get("/api/sessions/status", params={"sessionId": session_id})

    assert resp.status_code == 200
    session = resp.json()["session"]
    assert session["sessionId"] == session_id
    assert session["duration"] == 90
    assert session["inactivity"] == 90
    assert session["inactiveSeconds"] == 90
    assert session["status"] == "Active"
    assert session["macAddress"] == "AA:BB"
    assert session["serverIp"] == SERVER.address
    assert session["serverMac"] == SERVER.hardware_id
    assert isinstance(session["createdAt"], str)


def test_status_errors(client, clock):
    assert client.get("/api/sessions/status").status_code == 400
    assert client.get("/api/sessions/status", params={"sessionId": "nope"}).status_code == 404

    session_id = _login(client).json()["sessionId"]
    clock.advance(11 * 60)

    expired = client.get("/api/sessions/status", params={"sessionId": session_id})
    assert expired.status_code == 403
    assert expired.json()["sessionId"] == session_id
    again = client.get("/api/sessions/status", params={"sessionId": session_id})
    assert again.status_code == 403

    new_id = _login(client).json()["sessionId"]
    assert new_id != session_id


def test_client_address_from_forwarded_header(client):
    resp = client.post(
        "/api/sessions/login",
        json={"email": "a@x.com", "nickname": "a", "macAddress": "AA:BB"},
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )
    session_id = resp.json()["sessionId"]

    session = client.get("/api/sessions/status", params={"sessionId": session_id}).json()["session"]
    assert session["clientIp"] == "203.0.113.7"


def test_update_and_touch(client, clock):
    session_id = _login(client).json()["sessionId"]

    resp = client.put("/api/sessions/update", json={"sessionId": session_id, "nickname": "alice"})
    assert resp.status_code == 200
    assert resp.json()["session"]["nickname"] == "alice"
    assert resp.json()["session"]["email"] == "a@x.com"

    clock.advance(30)
    touched = client.post("/api/sessions/touch", json={"session_id": session_id})
    assert touched.status_code == 200
    status = client.get("/api/sessions/status", params={"sessionId": session_id}).json()
    assert status["session"]["inactivity"] == 0

    assert client.put("/api/sessions/update", json={"nickname": "x"}).status_code == 400
    assert client.put("/api/sessions/update", json={"sessionId": "nope"}).status_code == 404


def test_logout(client):
    session_id = _login(client).json()["sessionId"]

    assert client.post("/api/sessions/logout", json={}).status_code == 400
    assert client.post("/api/sessions/logout", json={"sessionId": "nope"}).status_code == 404
    assert client.post("/api/sessions/logout", json={"sessionId": session_id}).status_code == 200

    after = client.get("/api/sessions/status", params={"sessionId": session_id})
    assert after.status_code == 404


def test_listings(client):
    a = _login(client).json()["sessionId"]
    _login(client, email="b@x.com", nickname="b")
    client.post("/api/sessions/logout", json={"sessionId": a})

    assert len(client.get("/api/sessions").json()) == 2
    active = client.get("/api/sessions/active").json()
    assert [s["email"] for s in active] == ["b@x.com"]


def test_identity_collision_on_update_is_bad_request(client):
    _login(client)
    bob = _login(client, email="b@x.com", nickname="b").json()["sessionId"]

    resp = client.put(
        "/api/sessions/update",
        json={"sessionId": bob, "email": "a@x.com", "nickname": "a"},
    )

    assert resp.status_code == 400
    assert resp.json()["sessionId"] == bob


# ── Admin ────────────────────────────────────────────────────────────


def test_admin_routes_disabled_without_configured_key(client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_KEY_HASH", "")
    resp = client.post(
        "/api/admin/sessions/terminate",
        json={"sessionId": "x"},
        headers={"X-Admin-Key": ADMIN_KEY},
    )
    assert resp.status_code == 403


def test_admin_routes_reject_bad_key(client, monkeypatch, admin_key_hash):
    monkeypatch.setattr(settings, "ADMIN_API_KEY_HASH", admin_key_hash)

    assert client.post("/api/admin/sessions/terminate", json={"sessionId": "x"}).status_code == 401
    wrong = client.post(
        "/api/admin/sessions/terminate",
        json={"sessionId": "x"},
        headers={"X-Admin-Key": "guess"},
    )
    assert wrong.status_code == 401


def test_terminate(client, monkeypatch, admin_key_hash):
    monkeypatch.setattr(settings, "ADMIN_API_KEY_HASH", admin_key_hash)
    headers = {"X-Admin-Key": ADMIN_KEY}
    session_id = _login(client).json()["sessionId"]

    assert client.post(
        "/api/admin/sessions/terminate", json={}, headers=headers,
    ).status_code == 400
    assert client.post(
        "/api/admin/sessions/terminate", json={"sessionId": "nope"}, headers=headers,
    ).status_code == 404
    assert client.post(
        "/api/admin/sessions/terminate", json={"sessionId": session_id}, headers=headers,
    ).status_code == 200

    sessions = client.get("/api/sessions").json()
    assert sessions[0]["status"] == "SystemTerminated"


def test_purge_requires_explicit_opt_in(client, monkeypatch, admin_key_hash):
    monkeypatch.setattr(settings, "ADMIN_API_KEY_HASH", admin_key_hash)
    headers = {"X-Admin-Key": ADMIN_KEY}
    _login(client)
    _login(client, email="b@x.com", nickname="b")

    monkeypatch.setattr(settings, "ALLOW_PURGE", False)
    assert client.delete("/api/admin/sessions", headers=headers).status_code == 403
    assert len(client.get("/api/sessions").json()) == 2

    monkeypatch.setattr(settings, "ALLOW_PURGE", True)
    resp = client.delete("/api/admin/sessions", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["deleted"] == 2
    assert client.get("/api/sessions").json() == []


# ── Startup ──────────────────────────────────────────────────────────


class _DownStore(MemorySessionStore):
    async def ping(self) -> None:
        raise StorageUnavailableError("connection refused")


def test_startup_fails_when_store_is_unreachable():
    app = create_app(SessionRegistry(_DownStore()))
    with pytest.raises(StorageUnavailableError):
        with TestClient(app):
            pass


def test_storage_outage_maps_to_service_unavailable(registry, monkeypatch):
    async def _down(filter):
        raise StorageUnavailableError("find_one timed out")

    with TestClient(create_app(registry)) as c:
        monkeypatch.setattr(registry.store, "find_one", _down)
        resp = c.get("/api/sessions/status", params={"sessionId": "x"})
    assert resp.status_code == 503
