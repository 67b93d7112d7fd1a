"""Row <-> domain mappers.

Converts between the api_keys row shape (dict with the column names used by
the key store) and the ApiKey domain model. `value` in the row is `secret`
in the model.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Union

from keys.domain import ApiKey

DEFAULT_USAGE = 0
DEFAULT_USAGE_LIMIT = 1000

KeyRow = Dict[str, Any]


def _parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        # fromisoformat() only learned the trailing "Z" in 3.11
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def row_to_api_key(row: KeyRow) -> ApiKey:
    """
    Convert a stored row to an ApiKey.

    The table is shared, so rows written elsewhere may break the model's
    invariants: null or negative usage reads as 0, a null or non-positive
    usage_limit reads as the default.
    """
    usage = row.get("usage")
    usage_limit = row.get("usage_limit")
    if usage is not None and int(usage) < 0:
        usage = DEFAULT_USAGE
    if usage_limit is not None and int(usage_limit) < 1:
        usage_limit = None
    return ApiKey(
        id=str(row["id"]),
        name=row["name"],
        secret=row["value"],
        created_at=_parse_timestamp(row["created_at"]),
        usage=DEFAULT_USAGE if usage is None else int(usage),
        usage_limit=DEFAULT_USAGE_LIMIT if usage_limit is None else int(usage_limit),
    )


def api_key_to_row(key: ApiKey) -> KeyRow:
    """Convert an ApiKey to the row written at creation time."""
    return {
        "id": key.id,
        "name": key.name,
        "value": key.secret,
        "created_at": key.created_at,
        "usage": key.usage,
        "usage_limit": key.usage_limit,
    }


def rows_to_api_keys(rows) -> list[ApiKey]:
    """Convert rows to ApiKeys, preserving order."""
    return [row_to_api_key(row) for row in rows]
