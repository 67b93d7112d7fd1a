from datetime import datetime, timedelta, timezone

import pytest

from keys.store import KeyStoreError
from monitoring.observability import get_metrics
from tests.fakes import make_row

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _insert(store, key_id, secret, offset_days=0, **fields):
    store.insert(make_row(key_id, f"Key {key_id}", secret, BASE + timedelta(days=offset_days), **fields))


def test_read_all_newest_first(sql_store):
    _insert(sql_store, "old", "nani_old", 0)
    _insert(sql_store, "new", "nani_new", 2)
    _insert(sql_store, "mid", "nani_mid", 1)

    assert [row["id"] for row in sql_store.read_all()] == ["new", "mid", "old"]
    assert [row["id"] for row in sql_store.read_all(newest_first=False)] == ["old", "mid", "new"]


def test_rows_come_back_timezone_aware(sql_store):
    _insert(sql_store, "k", "nani_k")
    row = sql_store.read_all()[0]
    assert row["created_at"] == BASE
    assert row["created_at"].tzinfo is not None


def test_duplicate_secret_rejected(sql_store):
    _insert(sql_store, "a", "nani_same")
    with pytest.raises(KeyStoreError, match="already exists"):
        _insert(sql_store, "b", "nani_same")


def test_insert_rejects_unknown_columns(sql_store):
    row = make_row("a", "A", "nani_a", BASE)
    row["owner"] = "me"
    with pytest.raises(KeyStoreError):
        sql_store.insert(row)


def test_update_fields(sql_store):
    _insert(sql_store, "k", "nani_k")
    sql_store.update("k", {"name": "Renamed", "usage": 5})

    row = sql_store.find_one("id", "k")
    assert row["name"] == "Renamed"
    assert row["usage"] == 5


def test_update_missing_row(sql_store):
    with pytest.raises(KeyStoreError, match="not found"):
        sql_store.update("missing", {"usage": 1})


def test_update_immutable_column(sql_store):
    _insert(sql_store, "k", "nani_k")
    with pytest.raises(KeyStoreError):
        sql_store.update("k", {"value": "nani_other"})


def test_delete(sql_store):
    _insert(sql_store, "k", "nani_k")
    sql_store.delete("k")
    assert sql_store.read_all() == []

    with pytest.raises(KeyStoreError, match="not found"):
        sql_store.delete("k")


def test_find_one(sql_store):
    _insert(sql_store, "k", "nani_k", usage=None, usage_limit=None)

    row = sql_store.find_one("value", "nani_k")
    assert row["id"] == "k"
    assert sql_store.find_one("value", "nani_unknown") is None


def test_find_one_unknown_column(sql_store):
    with pytest.raises(KeyStoreError):
        sql_store.find_one("secret", "x")


def test_store_calls_are_traced(sql_store):
    before = get_metrics().get("key_store.read_all.calls", 0)
    sql_store.read_all()
    assert get_metrics()["key_store.read_all.calls"] == before + 1


def test_out_of_range_integer_is_store_error(sql_store):
    with pytest.raises(KeyStoreError):
        _insert(sql_store, "big", "nani_big", usage_limit=10**20)

    _insert(sql_store, "k", "nani_k")
    with pytest.raises(KeyStoreError):
        sql_store.update("k", {"usage": 10**20})
    assert sql_store.find_one("id", "k")["usage"] == 0
