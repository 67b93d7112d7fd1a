"""
Key store: the persistence collaborator behind the repository and the gate.

KeyStore is the contract (one instance per table). SqlKeyStore implements it
on SQLAlchemy. Every method either succeeds or raises KeyStoreError; rows
cross the boundary as plain dicts in the api_keys column shape.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from keys.mapper import KeyRow
from keys.models import ApiKeyRecord
from monitoring.observability import trace_request

logger = logging.getLogger(__name__)


class KeyStoreError(Exception):
    """Any failure reported by the key store."""


class KeyStore(ABC):

    @abstractmethod
    def read_all(self, newest_first: bool = True) -> List[KeyRow]:
        """Return every row, ordered by created_at."""

    @abstractmethod
    def insert(self, row: KeyRow) -> None:
        """Insert a full row."""

    @abstractmethod
    def update(self, row_id: str, fields: Dict[str, Any]) -> None:
        """Write `fields` onto the row with this id."""

    @abstractmethod
    def delete(self, row_id: str) -> None:
        """Delete the row with this id."""

    @abstractmethod
    def find_one(self, field: str, value: Any) -> Optional[KeyRow]:
        """Return the single row whose `field` equals `value`, or None."""


class SqlKeyStore(KeyStore):
    """
    KeyStore over the api_keys table.

    Each call runs in its own short session and commits before returning,
    so a successful return means the change is durable.
    """

    COLUMNS = frozenset(ApiKeyRecord.COLUMNS)
    # id and value never change after insert
    UPDATABLE = frozenset({"name", "usage", "usage_limit"})

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from keys.database import DatabaseManager
            session_factory = DatabaseManager.session_factory()
        self._session_factory = session_factory

    def read_all(self, newest_first: bool = True) -> List[KeyRow]:
        order = desc(ApiKeyRecord.created_at) if newest_first else ApiKeyRecord.created_at
        with trace_request("key_store.read_all"):
            session = self._session_factory()
            try:
                records = session.query(ApiKeyRecord).order_by(order).all()
                return [record.to_row() for record in records]
            except SQLAlchemyError as e:
                logger.error(f"Failed to read api_keys: {e}")
                raise KeyStoreError("Failed to fetch API keys") from e
            finally:
                session.close()

    def insert(self, row: KeyRow) -> None:
        unknown = set(row) - self.COLUMNS
        if unknown:
            raise KeyStoreError(f"Unknown columns: {sorted(unknown)}")

        with trace_request("key_store.insert"):
            session = self._session_factory()
            try:
                session.add(ApiKeyRecord(**row))
                session.commit()
                logger.info(f"Inserted api key {row.get('id')}")
            except IntegrityError as e:
                session.rollback()
                logger.error(f"Insert rejected for api key {row.get('id')}: {e}")
                raise KeyStoreError("API key id or value already exists") from e
            except (SQLAlchemyError, OverflowError) as e:
                session.rollback()
                logger.error(f"Insert failed for api key {row.get('id')}: {e}")
                raise KeyStoreError("Failed to create API key") from e
            finally:
                session.close()

    def update(self, row_id: str, fields: Dict[str, Any]) -> None:
        if not fields:
            raise KeyStoreError("Nothing to update")
        forbidden = set(fields) - self.UPDATABLE
        if forbidden:
            raise KeyStoreError(f"Columns cannot be updated: {sorted(forbidden)}")

        with trace_request("key_store.update"):
            session = self._session_factory()
            try:
                record = session.query(ApiKeyRecord).filter(ApiKeyRecord.id == row_id).first()
                if record is None:
                    raise KeyStoreError(f"API key {row_id} not found")

                for column, value in fields.items():
                    setattr(record, column, value)
                session.commit()
                logger.info(f"Updated api key {row_id}: {sorted(fields)}")
            except (SQLAlchemyError, OverflowError) as e:
                session.rollback()
                logger.error(f"Update failed for api key {row_id}: {e}")
                raise KeyStoreError("Failed to update API key") from e
            finally:
                session.close()

    def delete(self, row_id: str) -> None:
        with trace_request("key_store.delete"):
            session = self._session_factory()
            try:
                deleted = session.query(ApiKeyRecord).filter(ApiKeyRecord.id == row_id).delete()
                if not deleted:
                    session.rollback()
                    raise KeyStoreError(f"API key {row_id} not found")
                session.commit()
                logger.info(f"Deleted api key {row_id}")
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Delete failed for api key {row_id}: {e}")
                raise KeyStoreError("Failed to delete API key") from e
            finally:
                session.close()

    def find_one(self, field: str, value: Any) -> Optional[KeyRow]:
        if field not in self.COLUMNS:
            raise KeyStoreError(f"Unknown column: {field}")

        with trace_request("key_store.find_one"):
            session = self._session_factory()
            try:
                column = getattr(ApiKeyRecord, field)
                records = session.query(ApiKeyRecord).filter(column == value).limit(2).all()
            except SQLAlchemyError as e:
                logger.error(f"Lookup on api_keys.{field} failed: {e}")
                raise KeyStoreError("Failed to look up API key") from e
            finally:
                session.close()

        if len(records) > 1:
            raise KeyStoreError(f"Multiple api keys match on {field}")
        return records[0].to_row() if records else None
