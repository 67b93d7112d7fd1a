"""
FastAPI dependencies for the playground access gate.
Protected handlers receive the AccessGrant as an explicit argument.
"""

from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException
from loguru import logger

from apps.config import get_settings
from auth.access_gate import AccessGate
from auth.grant_store import AccessGrant, GrantSessionStore
from auth.grant_tokens import GrantTokenIssuer
from keys.database import DatabaseManager
from keys.store import SqlKeyStore

GRANT_COOKIE = "access_grant"

_grant_store: Optional[GrantSessionStore] = None
_token_issuer: Optional[GrantTokenIssuer] = None
_gate: Optional[AccessGate] = None


# ==================== SINGLETONS ====================

def get_grant_store() -> GrantSessionStore:
    global _grant_store

    if _grant_store is None:
        _grant_store = GrantSessionStore(ttl=get_settings().grant_token_ttl)
    return _grant_store


def get_token_issuer() -> GrantTokenIssuer:
    global _token_issuer

    if _token_issuer is None:
        settings = get_settings()
        _token_issuer = GrantTokenIssuer(settings.grant_token_secret, ttl=settings.grant_token_ttl)
    return _token_issuer


def get_access_gate() -> AccessGate:
    global _gate

    if _gate is None:
        _gate = AccessGate(SqlKeyStore(DatabaseManager.session_factory()))
    return _gate


# ==================== DEPENDENCY FUNCTIONS ====================

def extract_grant_token(
    authorization: Optional[str] = Header(None),
    access_grant: Optional[str] = Cookie(None)
) -> Optional[str]:
    """Bearer header wins over the cookie."""
    if authorization and authorization.startswith("Bearer "):
        return authorization.replace("Bearer ", "").strip()
    return access_grant


async def optional_grant(
    token: Optional[str] = Depends(extract_grant_token),
    issuer: GrantTokenIssuer = Depends(get_token_issuer),
    store: GrantSessionStore = Depends(get_grant_store)
) -> Optional[AccessGrant]:
    """
    Dependency: resolve the caller's grant, or None.
    """
    if not token:
        return None

    payload = issuer.verify(token)
    if not payload:
        return None

    grant = store.load_grant(payload["sid"])
    if grant is None:
        logger.warning(f"[GRANT] No active grant for session {payload['sid'][:8]}")
    return grant


async def require_grant(grant: Optional[AccessGrant] = Depends(optional_grant)) -> AccessGrant:
    """
    Dependency: require an authorized grant.
    """
    if grant is None or not grant.is_authorized:
        raise HTTPException(status_code=401, detail="Valid API key required")
    return grant
