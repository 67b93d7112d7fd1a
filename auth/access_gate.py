"""
Access gate for the playground.

Validates a presented secret by looking it up in the key store. The result
is deliberately coarse: a wrong secret, an unreachable store and a duplicate
match all come back as the same Denied value, so callers cannot probe the
store through the gate. The reason is only written to the log.
"""

from dataclasses import dataclass
from typing import Union

from loguru import logger

from keys.store import KeyStore, KeyStoreError


@dataclass(frozen=True)
class Granted:
    key_id: str
    name: str


@dataclass(frozen=True)
class Denied:
    pass


GateResult = Union[Granted, Denied]


class AccessGate:
    """Grants playground access to holders of a stored secret"""

    def __init__(self, store: KeyStore):
        self._store = store

    def validate(self, candidate: str) -> GateResult:
        secret = (candidate or "").strip()
        if not secret:
            logger.debug("[GATE] Empty candidate, denied without lookup")
            return Denied()

        try:
            row = self._store.find_one("value", secret)
        except KeyStoreError as e:
            logger.warning(f"[GATE] Lookup failed, denying: {e}")
            return Denied()

        if row is None:
            logger.warning(f"[GATE] No key matches candidate {secret[:8]}...")
            return Denied()

        logger.info(f"[GATE] Access granted for key {row['id']} ({row['name']!r})")
        return Granted(key_id=str(row["id"]), name=row["name"])
