"""Framework-agnostic domain models for the key dashboard.

ApiKey is what the repository holds in memory and what routes serialize.
The persisted row shape lives in keys.models and is converted at the
boundary by keys.mapper.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class ApiKey:
    """A single API key as seen by one dashboard session."""
    id: str
    name: str
    secret: str
    created_at: datetime
    usage: int = 0
    usage_limit: int = 1000


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    STORE = "store"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class OperationError:
    """Value of the repository error slot (the dashboard's dismissible banner)."""
    kind: ErrorKind
    message: str
    operation: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "operation": self.operation,
        }
