"""
Competitor Intel - Shared FastAPI Dependencies

Session check applied to every /api router except auth.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from access_control import SESSION_COOKIE_NAME, session_manager

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Session token from the cookie, falling back to an Authorization: Bearer header."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token
    if credentials is not None:
        return credentials.credentials
    return None


def require_session(token: Optional[str] = Depends(get_session_token)) -> dict:
    """Raises 401 unless the caller holds a valid session."""
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = session_manager.verify_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return payload
