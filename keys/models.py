"""
Database model for the api_keys table.

This is the persisted row shape behind the key store. The repository never
touches this class directly; it sees plain row dicts through keys.store and
converts them with keys.mapper.

Columns:
- id: Unique key identifier (UUID string)
- name: Display label
- value: The secret itself (unique, looked up by the access gate)
- created_at: Insert timestamp
- usage / usage_limit: Usage counter and its threshold (nullable)
"""

from sqlalchemy import Column, String, DateTime, Integer, Text
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone
import uuid

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiKeyRecord(Base):
    """A row of the api_keys table."""

    __tablename__ = "api_keys"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        doc="Unique key identifier"
    )

    name = Column(
        Text,
        nullable=False,
        doc="Display label (e.g., 'Production')"
    )

    value = Column(
        String(128),
        nullable=False,
        unique=True,
        index=True,
        doc="The secret; unique so the access gate matches at most one row"
    )

    created_at = Column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True,
        doc="When the key was created"
    )

    usage = Column(
        Integer,
        nullable=True,
        default=0,
        doc="Number of recorded requests"
    )

    usage_limit = Column(
        Integer,
        nullable=True,
        default=1000,
        doc="Request count at which the key is considered exhausted"
    )

    COLUMNS = ("id", "name", "value", "created_at", "usage", "usage_limit")

    def to_row(self) -> dict:
        """Plain dict in the key store row shape."""
        created_at = self.created_at
        # SQLite drops tzinfo on the way back
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "name": self.name,
            "value": self.value,
            "created_at": created_at,
            "usage": self.usage,
            "usage_limit": self.usage_limit,
        }

    def __repr__(self):
        return f"<ApiKeyRecord(id={self.id}, name={self.name!r}, usage={self.usage}/{self.usage_limit})>"
