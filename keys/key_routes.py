"""
Key dashboard API endpoints.

Exposed endpoints:
- GET    /api/keys                 - List keys (masked unless revealed) + error banner
- POST   /api/keys/refresh         - Re-read keys from the store
- POST   /api/keys                 - Create key
- PATCH  /api/keys/{id}            - Rename key
- DELETE /api/keys/{id}            - Delete key
- POST   /api/keys/{id}/usage      - Record one request ("simulate request")
- POST   /api/keys/{id}/reveal     - Toggle reveal for this session
- GET    /api/keys/presets         - Usage limit presets for the create dialog
- GET    /api/keys/error           - Current error banner
- DELETE /api/keys/error           - Dismiss the error banner
"""

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from typing import Optional
import logging

from apps.config import get_settings
from keys.codec import KeyCodec
from keys.database import DatabaseManager
from keys.domain import ErrorKind
from keys.repository import KeyRepository
from keys.schemas import (
    ApiKeyResponse,
    CreateKeyRequest,
    KeyListResponse,
    KeyMutationResponse,
    OperationErrorResponse,
    PresetsResponse,
    RenameKeyRequest,
    RevealResponse,
)
from keys.sessions import RepositoryRegistry
from keys.store import SqlKeyStore
from keys.usage import USAGE_LIMIT_PRESETS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/keys", tags=["keys"])

SESSION_COOKIE = "dashboard_session"

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORE: status.HTTP_502_BAD_GATEWAY,
}

_registry: Optional[RepositoryRegistry] = None


# ==================== DEPENDENCIES ====================

def get_registry() -> RepositoryRegistry:
    """Process-wide session registry, created on first use."""
    global _registry

    if _registry is None:
        settings = get_settings()
        store = SqlKeyStore(DatabaseManager.session_factory())
        codec = KeyCodec(prefix=settings.key_prefix)
        _registry = RepositoryRegistry(
            factory=lambda: KeyRepository(store, codec, settings.default_usage_limit)
        )
    return _registry


def get_repository(
    response: Response,
    dashboard_session: Optional[str] = Cookie(None),
    registry: RepositoryRegistry = Depends(get_registry)
) -> KeyRepository:
    session_id, repository = registry.get_or_create(dashboard_session)
    if session_id != dashboard_session:
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    # A new session reads through once, like the dashboard does on mount
    repository.list()
    return repository


# ==================== HELPERS ====================

def _to_response(repository: KeyRepository, key) -> ApiKeyResponse:
    return ApiKeyResponse.from_domain(
        key,
        display_key=repository.display_secret(key),
        revealed=repository.is_revealed(key.id),
        warning_ratio=get_settings().usage_warning_ratio,
    )


def _raise_for_error(repository: KeyRepository) -> None:
    error = repository.error
    if error is None:
        raise HTTPException(status_code=500, detail="Operation failed")
    raise HTTPException(status_code=ERROR_STATUS[error.kind], detail=error.to_dict())


def _list_response(repository: KeyRepository) -> KeyListResponse:
    keys = repository.list()
    return KeyListResponse(
        keys=[_to_response(repository, key) for key in keys],
        total=len(keys),
        is_loading=repository.is_loading,
        error=OperationErrorResponse.from_domain(repository.error),
    )


# ==================== READ ====================

@router.get("", response_model=KeyListResponse)
async def list_keys(repository: KeyRepository = Depends(get_repository)):
    """
    List keys for the dashboard, newest first.

    Store failures do not fail the request: the previous list is returned
    with the error banner filled in.
    """
    return _list_response(repository)


@router.post("/refresh", response_model=KeyListResponse)
async def refresh_keys(repository: KeyRepository = Depends(get_repository)):
    repository.refresh()
    return _list_response(repository)


@router.get("/presets", response_model=PresetsResponse)
async def get_presets():
    return PresetsResponse(
        presets=list(USAGE_LIMIT_PRESETS),
        default=get_settings().default_usage_limit
    )


@router.get("/error", response_model=Optional[OperationErrorResponse])
async def get_error(repository: KeyRepository = Depends(get_repository)):
    return OperationErrorResponse.from_domain(repository.error)


@router.delete("/error", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_error(repository: KeyRepository = Depends(get_repository)):
    repository.clear_error()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== MUTATIONS ====================

@router.post("", response_model=KeyMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_key(
    request: CreateKeyRequest,
    repository: KeyRepository = Depends(get_repository)
):
    """
    Create a key. The full secret is returned once (the key starts revealed).

    Example request:
        {"name": "Production", "usage_limit": 5000}
    """
    new_key = repository.create(request.name, request.usage_limit)
    if new_key is None:
        _raise_for_error(repository)

    return KeyMutationResponse(
        message="API key created successfully!",
        key=_to_response(repository, new_key)
    )


@router.patch("/{key_id}", response_model=KeyMutationResponse)
async def rename_key(
    key_id: str,
    request: RenameKeyRequest,
    repository: KeyRepository = Depends(get_repository)
):
    if not repository.rename(key_id, request.name):
        _raise_for_error(repository)

    key = repository.get(key_id)
    return KeyMutationResponse(
        message="API key name updated successfully",
        key=_to_response(repository, key) if key else None
    )


@router.delete("/{key_id}", response_model=KeyMutationResponse)
async def delete_key(key_id: str, repository: KeyRepository = Depends(get_repository)):
    if not repository.remove(key_id):
        _raise_for_error(repository)

    return KeyMutationResponse(message="API key deleted successfully")


@router.post("/{key_id}/usage", response_model=KeyMutationResponse)
async def record_usage(key_id: str, repository: KeyRepository = Depends(get_repository)):
    if not repository.increment_usage(key_id):
        _raise_for_error(repository)

    return KeyMutationResponse(
        message="Request recorded",
        key=_to_response(repository, repository.get(key_id))
    )


@router.post("/{key_id}/reveal", response_model=RevealResponse)
async def toggle_reveal(key_id: str, repository: KeyRepository = Depends(get_repository)):
    revealed = repository.toggle_reveal(key_id)
    if revealed is None:
        _raise_for_error(repository)

    key = repository.get(key_id)
    return RevealResponse(id=key_id, revealed=revealed, key=repository.display_secret(key))
