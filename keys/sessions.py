"""
In-memory registry of dashboard sessions.

Each dashboard session (identified by the dashboard_session cookie) gets its
own KeyRepository, so the reveal flags and the error banner are per session
while the keys themselves live in the shared key store.
WARNING: single-instance only; sessions are lost on restart.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple
import logging
import threading
import uuid

from keys.repository import KeyRepository

logger = logging.getLogger(__name__)


class RepositoryRegistry:
    """Maps session ids to repositories, expiring idle sessions and capping live ones."""

    def __init__(self, factory: Callable[[], KeyRepository], idle_ttl: int = 8 * 3600,
                 max_sessions: int = 1000):
        self._factory = factory
        self._max_sessions = max_sessions
        self._idle_ttl = timedelta(seconds=idle_ttl)
        self._sessions: Dict[str, Tuple[KeyRepository, datetime]] = {}
        self.lock = threading.Lock()

    def _cleanup_expired(self, now: datetime) -> None:
        expired = [sid for sid, (_, seen) in self._sessions.items() if now - seen > self._idle_ttl]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.debug(f"Dropped {len(expired)} idle dashboard sessions")

    def _evict_oldest(self) -> None:
        oldest = min(self._sessions, key=lambda sid: self._sessions[sid][1])
        del self._sessions[oldest]
        logger.info(f"Session cap reached, dropped least recent session {oldest[:8]}")

    def get_or_create(self, session_id: Optional[str]) -> Tuple[str, KeyRepository]:
        """Return (session_id, repository), opening a new session when needed."""
        now = datetime.now(timezone.utc)
        with self.lock:
            self._cleanup_expired(now)
            if session_id and session_id in self._sessions:
                repository, _ = self._sessions[session_id]
                self._sessions[session_id] = (repository, now)
                return session_id, repository

            if len(self._sessions) >= self._max_sessions:
                self._evict_oldest()

            new_id = uuid.uuid4().hex
            repository = self._factory()
            self._sessions[new_id] = (repository, now)
            logger.info(f"Opened dashboard session {new_id[:8]}")
            return new_id, repository

    def close(self, session_id: str) -> None:
        with self.lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        with self.lock:
            return len(self._sessions)
