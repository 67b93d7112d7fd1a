from fastapi.testclient import TestClient

from apps.api.main import app
from auth.access_gate import AccessGate
from auth.dependencies import GRANT_COOKIE, get_access_gate
from tests.conftest import KNOWN_SECRET
from tests.fakes import FakeKeyStore


def _validate(client, api_key):
    return client.post("/api/playground/validate", json={"api_key": api_key})


def test_valid_key_opens_grant(client):
    response = _validate(client, KNOWN_SECRET)

    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["key_name"] == "Production"
    assert body["redirect_to"] == "/protected"
    assert body["token_type"] == "bearer"
    assert GRANT_COOKIE in response.cookies

    protected = client.get("/api/protected")
    assert protected.status_code == 200
    assert protected.json()["key_name"] == "Production"
    assert protected.json()["authorized"] is True


def test_bearer_token_is_accepted(client):
    token = _validate(client, KNOWN_SECRET).json()["access_token"]

    fresh = TestClient(app)
    response = fresh.get("/api/protected", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_wrong_key_is_denied(client):
    response = _validate(client, "wrong")

    assert response.status_code == 401
    assert response.json() == {"valid": False, "message": "Invalid API key"}
    assert GRANT_COOKIE not in response.cookies


def test_empty_key_denied_without_lookup(client):
    store = FakeKeyStore()
    app.dependency_overrides[get_access_gate] = lambda: AccessGate(store)

    response = _validate(client, "")

    assert response.status_code == 401
    assert response.json()["valid"] is False
    assert store.calls == []


def test_store_outage_looks_like_wrong_key(client):
    store = FakeKeyStore()
    store.failing.add("find_one")
    app.dependency_overrides[get_access_gate] = lambda: AccessGate(store)

    response = _validate(client, KNOWN_SECRET)

    assert response.status_code == 401
    assert response.json() == {"valid": False, "message": "Invalid API key"}


def test_protected_api_requires_grant(client):
    response = client.get("/api/protected")

    assert response.status_code == 401
    assert response.json()["detail"] == "Valid API key required"


def test_protected_page_redirects_without_grant(client):
    response = client.get("/protected", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/playground"


def test_protected_page_with_grant(client):
    _validate(client, KNOWN_SECRET)

    response = client.get("/protected", follow_redirects=False)
    assert response.status_code == 200
    assert response.json()["key_name"] == "Production"


def test_forged_token_rejected(client):
    response = client.get("/api/protected", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_logout_invalidates_token(client, grant_store):
    token = _validate(client, KNOWN_SECRET).json()["access_token"]

    response = client.post("/api/playground/logout")
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert grant_store.sessions == {}

    response = client.get("/api/protected", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_partial_session_is_not_authorized(client, grant_store, token_issuer):
    token = token_issuer.issue("half-session", "Production")
    grant_store.set_entry("half-session", "api_key_name", "Production")

    response = client.get("/api/protected", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
