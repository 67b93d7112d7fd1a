import time

import jwt
import pytest

from auth.grant_store import (
    KEY_NAME_ENTRY,
    VALIDATED_KEY_ENTRY,
    AccessGrant,
    GrantSessionStore,
    secret_marker,
)
from auth.grant_tokens import GrantTokenIssuer

SECRET = "nani_AAAAAAAA-BBBB-CCCC-DDDD-EEEEEEEEEEEE"


def test_saved_grant_loads():
    store = GrantSessionStore()
    store.save_grant("sid-1", SECRET, "Production")

    assert store.load_grant("sid-1") == AccessGrant(granted_key_name="Production", is_authorized=True)


def test_plaintext_secret_not_kept():
    store = GrantSessionStore()
    store.save_grant("sid-1", SECRET, "Production")

    entries = store.sessions["sid-1"]
    assert entries[VALIDATED_KEY_ENTRY] == secret_marker(SECRET)
    assert SECRET not in entries.values()


def test_partial_session_is_not_authorized():
    store = GrantSessionStore()
    store.set_entry("only-marker", VALIDATED_KEY_ENTRY, secret_marker(SECRET))
    store.set_entry("only-name", KEY_NAME_ENTRY, "Production")

    assert store.load_grant("only-marker") is None
    assert store.load_grant("only-name") is None
    assert store.load_grant("unknown") is None


def test_clear_removes_both_entries():
    store = GrantSessionStore()
    store.save_grant("sid-1", SECRET, "Production")
    store.clear("sid-1")

    assert store.load_grant("sid-1") is None
    assert "sid-1" not in store.sessions


def test_expired_grant_is_dropped():
    store = GrantSessionStore(ttl=-1)
    store.save_grant("sid-1", SECRET, "Production")

    assert store.load_grant("sid-1") is None
    assert "sid-1" not in store.sessions


def test_token_round_trip():
    issuer = GrantTokenIssuer("x" * 32, ttl=60)
    sid = issuer.new_session_id()

    claims = issuer.verify(issuer.issue(sid, "Production"))

    assert claims["sid"] == sid
    assert claims["name"] == "Production"
    assert claims["type"] == "access_grant"


def test_token_signed_with_other_secret_rejected():
    token = GrantTokenIssuer("a" * 32).issue("sid", "Production")
    assert GrantTokenIssuer("b" * 32).verify(token) is None


def test_expired_token_rejected():
    issuer = GrantTokenIssuer("x" * 32, ttl=-10)
    assert issuer.verify(issuer.issue("sid", "Production")) is None


def test_foreign_token_type_rejected():
    token = jwt.encode(
        {"sid": "sid", "type": "access", "exp": int(time.time()) + 60},
        "x" * 32,
        algorithm="HS256",
    )
    assert GrantTokenIssuer("x" * 32).verify(token) is None


def test_issuer_requires_secret():
    with pytest.raises(ValueError):
        GrantTokenIssuer("")


def test_saving_sweeps_expired_sessions():
    store = GrantSessionStore(ttl=-1)
    for n in range(100):
        store.save_grant(f"sid-{n}", SECRET, "Production")

    store.save_grant("latest", SECRET, "Production")

    assert list(store.sessions) == ["latest"]
    assert list(store.expiry) == ["latest"]


def test_loading_sweeps_expired_sessions():
    store = GrantSessionStore(ttl=-1)
    store.save_grant("sid-1", SECRET, "Production")
    store.set_entry("sid-2", KEY_NAME_ENTRY, "Staging")

    assert store.load_grant("unrelated") is None
    assert store.sessions == {}
    assert store.expiry == {}
