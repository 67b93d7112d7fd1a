"""
FastAPI endpoints for the playground access gate and the protected area.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field
from typing import Optional
from loguru import logger

from auth.access_gate import AccessGate, Granted
from auth.dependencies import (
    GRANT_COOKIE,
    extract_grant_token,
    get_access_gate,
    get_grant_store,
    get_token_issuer,
    optional_grant,
    require_grant,
)
from auth.grant_store import AccessGrant, GrantSessionStore
from auth.grant_tokens import GrantTokenIssuer

router = APIRouter(tags=["playground"])

PLAYGROUND_PATH = "/playground"
PROTECTED_PATH = "/protected"

# ==================== REQUEST MODELS ====================

class ValidateKeyRequest(BaseModel):
    api_key: str = Field("", max_length=512)

# ==================== HELPER FUNCTIONS ====================

def get_client_ip(request: Request) -> str:
    """Extract client IP from request"""
    if request.client:
        return request.client.host
    return "unknown"

# ==================== GATE ====================

@router.post("/api/playground/validate")
async def validate_key(
    data: ValidateKeyRequest,
    request: Request,
    gate: AccessGate = Depends(get_access_gate),
    store: GrantSessionStore = Depends(get_grant_store),
    issuer: GrantTokenIssuer = Depends(get_token_issuer)
):
    """
    Check an API key and open a playground grant.

    Every failure (unknown key, empty input, store trouble) gets the same
    401 response.
    """
    try:
        result = gate.validate(data.api_key)

        if not isinstance(result, Granted):
            logger.warning(f"[GATE] Validation failed from {get_client_ip(request)}")
            return JSONResponse(
                status_code=401,
                content={"valid": False, "message": "Invalid API key"}
            )

        session_id = issuer.new_session_id()
        store.save_grant(session_id, data.api_key.strip(), result.name)
        token = issuer.issue(session_id, result.name)

        logger.info(f"[GATE] Grant opened for {result.name!r} from {get_client_ip(request)}")

        response = JSONResponse(content={
            "valid": True,
            "message": "API key is valid",
            "key_name": result.name,
            "access_token": token,
            "token_type": "bearer",
            "expires_in": issuer.ttl,
            "redirect_to": PROTECTED_PATH
        })
        response.set_cookie(
            GRANT_COOKIE, token,
            max_age=issuer.ttl, httponly=True, samesite="lax"
        )
        return response

    except Exception as e:
        logger.error(f"[GATE] Validation error: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail="Validation failed")


@router.post("/api/playground/logout")
async def logout(
    token: Optional[str] = Depends(extract_grant_token),
    issuer: GrantTokenIssuer = Depends(get_token_issuer),
    store: GrantSessionStore = Depends(get_grant_store)
):
    """Drop the grant (both session entries) and the cookie."""
    payload = issuer.verify(token) if token else None
    if payload:
        store.clear(payload["sid"])
        logger.info(f"[GATE] Grant closed for {payload.get('name')!r}")

    response = JSONResponse(content={"success": True, "message": "Logged out successfully"})
    response.delete_cookie(GRANT_COOKIE)
    return response

# ==================== PROTECTED AREA ====================

@router.get("/api/protected")
async def protected_resource(grant: AccessGrant = Depends(require_grant)):
    """Protected content for holders of a valid key."""
    return {
        "authorized": grant.is_authorized,
        "key_name": grant.granted_key_name,
        "message": f"Welcome! You are accessing the protected area with key {grant.granted_key_name!r}."
    }


@router.get(PROTECTED_PATH)
async def protected_page(grant: Optional[AccessGrant] = Depends(optional_grant)):
    """Page entry: without a grant, redirect to the playground before rendering anything."""
    if grant is None:
        return RedirectResponse(url=PLAYGROUND_PATH, status_code=303)

    return {
        "authorized": True,
        "key_name": grant.granted_key_name,
        "logout_url": "/api/playground/logout"
    }
