"""Test doubles for the key store and the language model."""

from typing import Any, Dict, List, Optional

from keys.store import KeyStore, KeyStoreError
from research.adapters.interface import GeneratorAdapter


class FakeKeyStore(KeyStore):
    """In-memory KeyStore that records calls and can be told to fail."""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.rows: List[Dict[str, Any]] = [dict(row) for row in rows or []]
        self.calls: List[str] = []
        self.failing: set = set()

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failing:
            raise KeyStoreError(f"{operation} unavailable")

    def read_all(self, newest_first: bool = True):
        self._enter("read_all")
        return sorted(
            (dict(row) for row in self.rows),
            key=lambda row: row["created_at"],
            reverse=newest_first,
        )

    def insert(self, row):
        self._enter("insert")
        if any(r["id"] == row["id"] or r["value"] == row["value"] for r in self.rows):
            raise KeyStoreError("API key id or value already exists")
        self.rows.append(dict(row))

    def update(self, row_id, fields):
        self._enter("update")
        for row in self.rows:
            if row["id"] == row_id:
                row.update(fields)
                return
        raise KeyStoreError(f"API key {row_id} not found")

    def delete(self, row_id):
        self._enter("delete")
        before = len(self.rows)
        self.rows = [row for row in self.rows if row["id"] != row_id]
        if len(self.rows) == before:
            raise KeyStoreError(f"API key {row_id} not found")

    def find_one(self, field, value):
        self._enter("find_one")
        matches = [row for row in self.rows if row.get(field) == value]
        if len(matches) > 1:
            raise KeyStoreError(f"Multiple api keys match on {field}")
        return dict(matches[0]) if matches else None


class FakeGenerator(GeneratorAdapter):

    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.messages = None

    def generate(self, messages, **kwargs) -> str:
        self.messages = messages
        if self.error is not None:
            raise self.error
        return self.reply

    def get_model_info(self):
        return {"provider": "fake", "model": "fake-model"}


def make_row(key_id: str, name: str, secret: str, created_at, usage=0, usage_limit=1000) -> Dict[str, Any]:
    return {
        "id": key_id,
        "name": name,
        "value": secret,
        "created_at": created_at,
        "usage": usage,
        "usage_limit": usage_limit,
    }
