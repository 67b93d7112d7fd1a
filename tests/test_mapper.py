from datetime import datetime, timezone

from keys.domain import ApiKey
from keys.mapper import api_key_to_row, row_to_api_key, rows_to_api_keys


def test_row_defaults_for_null_usage_fields():
    key = row_to_api_key({
        "id": "k1",
        "name": "Default",
        "value": "nani_x",
        "created_at": "2024-03-01T12:00:00Z",
        "usage": None,
        "usage_limit": None,
    })

    assert key.usage == 0
    assert key.usage_limit == 1000
    assert key.secret == "nani_x"
    assert key.created_at == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_missing_usage_fields_default():
    key = row_to_api_key({
        "id": 7,
        "name": "Legacy",
        "value": "nani_y",
        "created_at": datetime(2024, 1, 1),
    })

    assert key.id == "7"
    assert key.usage == 0
    assert key.usage_limit == 1000
    assert key.created_at.tzinfo is not None


def test_api_key_to_row_uses_value_column():
    created = datetime(2024, 5, 5, tzinfo=timezone.utc)
    key = ApiKey(id="k2", name="Staging", secret="nani_z", created_at=created, usage=3, usage_limit=500)

    row = api_key_to_row(key)

    assert row == {
        "id": "k2",
        "name": "Staging",
        "value": "nani_z",
        "created_at": created,
        "usage": 3,
        "usage_limit": 500,
    }
    assert row_to_api_key(row) == key


def test_rows_keep_order():
    rows = [
        {"id": "b", "name": "B", "value": "v2", "created_at": "2024-01-02T00:00:00+00:00"},
        {"id": "a", "name": "A", "value": "v1", "created_at": "2024-01-01T00:00:00+00:00"},
    ]
    assert [key.id for key in rows_to_api_keys(rows)] == ["b", "a"]


def test_out_of_range_usage_fields_are_coerced():
    key = row_to_api_key({
        "id": "foreign",
        "name": "Foreign",
        "value": "nani_f",
        "created_at": "2024-01-01T00:00:00+00:00",
        "usage": -5,
        "usage_limit": 0,
    })

    assert key.usage == 0
    assert key.usage_limit == 1000


def test_negative_limit_is_coerced():
    key = row_to_api_key({
        "id": "foreign",
        "name": "Foreign",
        "value": "nani_f",
        "created_at": "2024-01-01T00:00:00+00:00",
        "usage": 3,
        "usage_limit": -10,
    })

    assert key.usage == 3
    assert key.usage_limit == 1000
