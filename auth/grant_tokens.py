"""
Signed capability tokens for playground grants.

The token only names the grant session (claim `sid`); the grant itself lives
server-side in GrantSessionStore, so logging out invalidates the token even
before it expires.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from loguru import logger

TOKEN_TYPE = "access_grant"
ALGORITHM = "HS256"


class GrantTokenIssuer:
    """Issues and verifies HS256 grant tokens"""

    def __init__(self, secret: str, ttl: int = 3600):
        if not secret:
            raise ValueError("Grant token secret not set")
        self._secret = secret
        self.ttl = ttl

    def new_session_id(self) -> str:
        return uuid.uuid4().hex

    def issue(self, session_id: str, key_name: str) -> str:
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sid": session_id,
                "name": key_name,
                "type": TOKEN_TYPE,
                "iat": now,
                "exp": now + timedelta(seconds=self.ttl)
            },
            self._secret,
            algorithm=ALGORITHM
        )
        logger.debug(f"[GRANT] Token issued for session {session_id[:8]}")
        return token

    def verify(self, token: str) -> Optional[dict]:
        """Return the claims, or None for an expired, forged or foreign token"""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            logger.warning("[GRANT] Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"[GRANT] Invalid token: {e}")
            return None

        if payload.get("type") != TOKEN_TYPE or not payload.get("sid"):
            logger.warning(f"[GRANT] Invalid token type: {payload.get('type')}")
            return None
        return payload
