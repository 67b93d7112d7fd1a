"""
Session-scoped key repository.

The repository keeps the canonical in-memory list of keys for one dashboard
session and synchronizes every mutation against the key store. Local state
changes only after the store call succeeds, so it always reflects the last
successful store operation.

Failures never escape as exceptions. Each operation clears the error slot on
entry, and on failure fills it with an OperationError and returns a falsy
value; callers read `repository.error` the way the dashboard shows its
dismissible banner.

Repository methods:
- list, refresh
- create, rename, remove, increment_usage
- toggle_reveal, is_revealed, display_secret
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Set
import logging
import uuid

from keys.codec import MASK_GLYPH, MASK_WIDTH, VISIBLE_HEAD, VISIBLE_TAIL, KeyCodec
from keys.domain import ApiKey, ErrorKind, OperationError
from keys.mapper import DEFAULT_USAGE_LIMIT, api_key_to_row, rows_to_api_keys
from keys.store import KeyStore, KeyStoreError
from keys.usage import MAX_USAGE_LIMIT

logger = logging.getLogger(__name__)


class KeyRepository:
    """
    Read-through cache over a KeyStore for a single session.

    Ordering: most recently created first.
    Concurrency: increment_usage is read-modify-write on the local value,
    so two sessions incrementing the same key can lose updates (last write
    wins at the store); the local value is corrected on the next refresh().
    """

    def __init__(
        self,
        store: KeyStore,
        codec: Optional[KeyCodec] = None,
        default_usage_limit: int = DEFAULT_USAGE_LIMIT
    ):
        self._store = store
        self._codec = codec or KeyCodec()
        self._default_usage_limit = default_usage_limit
        self._keys: List[ApiKey] = []
        self._revealed: Set[str] = set()
        self._loaded = False
        self.is_loading = True
        self.error: Optional[OperationError] = None

    # ==================== ERROR SLOT ====================

    def clear_error(self) -> None:
        self.error = None

    def _fail(self, kind: ErrorKind, message: str, operation: str) -> None:
        self.error = OperationError(kind=kind, message=message, operation=operation)
        if kind is ErrorKind.STORE:
            logger.error(f"[{operation}] {message}")
        else:
            logger.warning(f"[{operation}] {message}")

    @staticmethod
    def _message(exc: Exception, default: str) -> str:
        return str(exc).strip() or default

    # ==================== READ ====================

    def list(self) -> List[ApiKey]:
        """Current snapshot; the first call reads through to the store once."""
        if not self._loaded:
            self.refresh()
        return list(self._keys)

    def refresh(self) -> bool:
        """Replace local state with the store's rows (newest first)."""
        self.error = None
        try:
            rows = self._store.read_all(newest_first=True)
            keys = rows_to_api_keys(rows)
        except (KeyStoreError, KeyError, ValueError) as e:
            self._fail(ErrorKind.STORE, self._message(e, "Failed to fetch API keys"), "list")
            return False
        finally:
            # Only the first read-through is automatic, later ones are explicit
            self._loaded = True
            self.is_loading = False

        self._keys = keys
        known = {key.id for key in keys}
        self._revealed &= known
        logger.debug(f"Loaded {len(keys)} api keys")
        return True

    def get(self, key_id: str) -> Optional[ApiKey]:
        for key in self._keys:
            if key.id == key_id:
                return key
        return None

    # ==================== CREATE ====================

    def create(self, name: str, usage_limit: Optional[int] = None) -> Optional[ApiKey]:
        """
        Create a key and prepend it locally.

        Returns:
            The new ApiKey, or None when validation or the store failed
        """
        self.error = None
        clean_name = (name or "").strip()
        if not clean_name:
            self._fail(ErrorKind.VALIDATION, "API key name cannot be empty", "create")
            return None

        limit = self._default_usage_limit if usage_limit is None else usage_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            self._fail(ErrorKind.VALIDATION, "Usage limit must be a positive integer", "create")
            return None
        if limit > MAX_USAGE_LIMIT:
            self._fail(ErrorKind.VALIDATION, f"Usage limit must be at most {MAX_USAGE_LIMIT}", "create")
            return None

        new_key = ApiKey(
            id=str(uuid.uuid4()),
            name=clean_name,
            secret=self._codec.generate(),
            created_at=datetime.now(timezone.utc),
            usage=0,
            usage_limit=limit,
        )

        try:
            self._store.insert(api_key_to_row(new_key))
        except KeyStoreError as e:
            self._fail(ErrorKind.STORE, self._message(e, "Failed to create API key"), "create")
            return None

        self._keys.insert(0, new_key)
        # A freshly created key is shown in full once
        self._revealed.add(new_key.id)
        logger.info(f"Created api key {new_key.id} ({clean_name!r}, limit {limit})")
        return new_key

    # ==================== UPDATE ====================

    def rename(self, key_id: str, new_name: str) -> bool:
        self.error = None
        clean_name = (new_name or "").strip()
        if not clean_name:
            self._fail(ErrorKind.VALIDATION, "API key name cannot be empty", "rename")
            return False

        try:
            self._store.update(key_id, {"name": clean_name})
        except KeyStoreError as e:
            self._fail(ErrorKind.STORE, self._message(e, "Failed to update API key"), "rename")
            return False

        self._keys = [
            replace(key, name=clean_name) if key.id == key_id else key
            for key in self._keys
        ]
        logger.info(f"Renamed api key {key_id} to {clean_name!r}")
        return True

    def increment_usage(self, key_id: str) -> bool:
        """
        Record one request against a key.

        Uses the locally known usage (no re-fetch), writes usage + 1 and then
        updates the local entry.
        """
        self.error = None
        key = self.get(key_id)
        if key is None:
            self._fail(ErrorKind.NOT_FOUND, f"API key {key_id} not found", "increment_usage")
            return False

        new_usage = key.usage + 1
        try:
            self._store.update(key_id, {"usage": new_usage})
        except KeyStoreError as e:
            self._fail(ErrorKind.STORE, self._message(e, "Failed to update usage"), "increment_usage")
            return False

        self._keys = [
            replace(k, usage=new_usage) if k.id == key_id else k
            for k in self._keys
        ]
        logger.debug(f"Usage for api key {key_id} is now {new_usage}/{key.usage_limit}")
        return True

    # ==================== DELETE ====================

    def remove(self, key_id: str) -> bool:
        self.error = None
        try:
            self._store.delete(key_id)
        except KeyStoreError as e:
            self._fail(ErrorKind.STORE, self._message(e, "Failed to delete API key"), "remove")
            return False

        self._keys = [key for key in self._keys if key.id != key_id]
        self._revealed.discard(key_id)
        logger.info(f"Deleted api key {key_id}")
        return True

    # ==================== REVEAL ====================

    def toggle_reveal(self, key_id: str) -> Optional[bool]:
        """
        Flip the reveal flag for a key in this session.

        Returns:
            The new flag, or None if the key is unknown locally
        """
        self.error = None
        if self.get(key_id) is None:
            self._fail(ErrorKind.NOT_FOUND, f"API key {key_id} not found", "toggle_reveal")
            return None

        if key_id in self._revealed:
            self._revealed.discard(key_id)
            return False
        self._revealed.add(key_id)
        return True

    def is_revealed(self, key_id: str) -> bool:
        return key_id in self._revealed

    def display_secret(self, key: ApiKey) -> str:
        if self.is_revealed(key.id):
            return key.secret
        # Too short to keep a head and tail without exposing most of it
        if len(key.secret) < VISIBLE_HEAD + VISIBLE_TAIL:
            return MASK_GLYPH * MASK_WIDTH
        return self._codec.mask(key.secret)
