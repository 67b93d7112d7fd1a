"""
Session-scoped storage for playground access grants (MVP version).

Each grant session keeps two entries, written and cleared together:
- validated_api_key: SHA-256 marker of the secret that passed the gate
- api_key_name: display name of that key
A session holding only one of them is treated as not authorized.
WARNING: This is single-instance only and data is lost on restart.
"""

import hashlib
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from loguru import logger

VALIDATED_KEY_ENTRY = "validated_api_key"
KEY_NAME_ENTRY = "api_key_name"


@dataclass(frozen=True)
class AccessGrant:
    """Capability handed to protected handlers."""
    granted_key_name: str
    is_authorized: bool = True


def secret_marker(secret: str) -> str:
    """SHA-256 of the secret; the plaintext is never kept in the session."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


class GrantSessionStore:
    """In-memory session storage keyed by grant session id"""

    def __init__(self, ttl: int = 3600):
        self.ttl = ttl
        self.sessions: Dict[str, Dict[str, str]] = {}  # session id -> entries
        self.expiry: Dict[str, datetime] = {}  # session id -> expiry time
        self.lock = threading.Lock()

    def _drop(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)
        self.expiry.pop(session_id, None)

    def _cleanup_expired(self) -> None:
        """Drop every expired session; caller holds the lock."""
        now = datetime.now(timezone.utc)
        expired = [sid for sid, expiry in self.expiry.items() if now > expiry]
        for sid in expired:
            self._drop(sid)
        if expired:
            logger.debug(f"[GRANT] Cleaned up {len(expired)} expired sessions")

    def set_entry(self, session_id: str, entry: str, value: str) -> None:
        with self.lock:
            self._cleanup_expired()
            self.sessions.setdefault(session_id, {})[entry] = value
            self.expiry[session_id] = datetime.now(timezone.utc) + timedelta(seconds=self.ttl)

    def save_grant(self, session_id: str, secret: str, key_name: str) -> None:
        with self.lock:
            self._cleanup_expired()
            self.sessions[session_id] = {
                VALIDATED_KEY_ENTRY: secret_marker(secret),
                KEY_NAME_ENTRY: key_name,
            }
            self.expiry[session_id] = datetime.now(timezone.utc) + timedelta(seconds=self.ttl)
        logger.debug(f"[GRANT] Stored grant for session {session_id[:8]}")

    def load_grant(self, session_id: str) -> Optional[AccessGrant]:
        """Return the grant only when both entries are present and unexpired."""
        with self.lock:
            self._cleanup_expired()
            entries = self.sessions.get(session_id) or {}
            marker = entries.get(VALIDATED_KEY_ENTRY)
            name = entries.get(KEY_NAME_ENTRY)
            if not marker or not name:
                return None
            return AccessGrant(granted_key_name=name, is_authorized=True)

    def clear(self, session_id: str) -> None:
        with self.lock:
            self._drop(session_id)
        logger.debug(f"[GRANT] Cleared session {session_id[:8]}")
