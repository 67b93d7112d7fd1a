"""
Pydantic schemas for the key dashboard API.

These schemas handle:
1. Request validation (what the dashboard sends)
2. Response serialization (what the API returns)
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from keys.domain import ApiKey, OperationError
from keys.usage import summarize_usage


# ============ Request Schemas ============

class CreateKeyRequest(BaseModel):
    """
    Request to create a new API key.

    Example:
        {
            "name": "Production",
            "usage_limit": 5000
        }

    Name and limit (1 to 2**31 - 1) are checked by the repository, not
    here, so a bad value is reported as a validation error in the error slot.
    """
    name: str = Field(..., max_length=255, description="Display label")
    usage_limit: Optional[int] = Field(
        None,
        description="Request budget for the key (defaults to 1000)"
    )


class RenameKeyRequest(BaseModel):
    """Request to change the display label of a key."""
    name: str = Field(..., max_length=255, description="New display label")


# ============ Response Schemas ============

class UsageResponse(BaseModel):
    usage: int
    usage_limit: int
    remaining: int
    percentage: float
    state: str = Field(..., description="normal, warning or exceeded")


class ApiKeyResponse(BaseModel):
    """
    A key as rendered on the dashboard.

    `key` is masked unless the session revealed it.
    """
    id: str
    name: str
    key: str
    revealed: bool
    created_at: datetime
    usage: UsageResponse

    @classmethod
    def from_domain(cls, api_key: ApiKey, display_key: str, revealed: bool,
                    warning_ratio: float = 0.8) -> "ApiKeyResponse":
        return cls(
            id=api_key.id,
            name=api_key.name,
            key=display_key,
            revealed=revealed,
            created_at=api_key.created_at,
            usage=UsageResponse(**summarize_usage(api_key, warning_ratio)),
        )


class OperationErrorResponse(BaseModel):
    kind: str
    message: str
    operation: Optional[str] = None

    @classmethod
    def from_domain(cls, error: Optional[OperationError]) -> Optional["OperationErrorResponse"]:
        if error is None:
            return None
        return cls(**error.to_dict())


class KeyListResponse(BaseModel):
    keys: List[ApiKeyResponse]
    total: int
    is_loading: bool = False
    error: Optional[OperationErrorResponse] = None


class KeyMutationResponse(BaseModel):
    """Result of a mutation; `message` feeds the dashboard toast."""
    success: bool = True
    message: str
    key: Optional[ApiKeyResponse] = None


class RevealResponse(BaseModel):
    id: str
    revealed: bool
    key: str


class PresetsResponse(BaseModel):
    presets: List[int]
    default: int
