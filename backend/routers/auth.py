"""
Competitor Intel - Authentication Router

Endpoints:
- POST /api/auth - Exchange the shared password for a session cookie
- POST /api/auth/logout - Clear the session cookie
"""

import logging
from fastapi import APIRouter, HTTPException, Response

from access_control import SESSION_COOKIE_NAME, session_manager
from schemas.auth import LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("")
def login(payload: LoginRequest, response: Response):
    """Check the shared password and set the httpOnly session cookie."""
    if not session_manager.check_password(payload.password):
        logger.info("Rejected login attempt")
        raise HTTPException(status_code=401, detail="Invalid password")

    token = session_manager.create_session_token()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=session_manager.max_age_seconds,
        httponly=True,
        samesite="lax",
        path="/",
    )
    return {"success": True, "access_token": token, "token_type": "bearer"}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
    return {"success": True}
