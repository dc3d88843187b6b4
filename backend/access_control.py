"""
Competitor Intel - Shared-Password Sessions

The app has a single shared secret (ACCESS_PASSWORD). A correct password is
exchanged for a signed JWT that lives in the httpOnly `eh_session` cookie.
"""

import hmac
import logging
import os
import secrets
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

# JWT settings
SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_hex(32))
ALGORITHM = "HS256"
SESSION_COOKIE_NAME = "eh_session"
SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", "7"))
SESSION_SUBJECT = "shared-access"


class SessionManager:
    """Checks the shared password and issues/verifies session tokens."""

    def __init__(self, password: Optional[str] = None, secret_key: str = SECRET_KEY,
                 ttl_days: int = SESSION_TTL_DAYS):
        self._password = password
        self.secret_key = secret_key
        self.ttl = timedelta(days=ttl_days)

    @property
    def password(self) -> str:
        # Read lazily so tests and .env loading can set it after import
        return self._password or os.getenv("ACCESS_PASSWORD", "escapehatch")

    @property
    def max_age_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    def check_password(self, candidate: Optional[str]) -> bool:
        if not candidate:
            return False
        return hmac.compare_digest(candidate.encode(), self.password.encode())

    def create_session_token(self) -> str:
        expire = datetime.utcnow() + self.ttl
        return jwt.encode(
            {"sub": SESSION_SUBJECT, "exp": expire},
            self.secret_key,
            algorithm=ALGORITHM,
        )

    def verify_token(self, token: Optional[str]) -> Optional[dict]:
        """Return the token payload, or None when missing/invalid/expired."""
        if not token:
            return None
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except JWTError as e:
            logger.debug(f"Session token rejected: {e}")
            return None
        if payload.get("sub") != SESSION_SUBJECT:
            return None
        return payload


session_manager = SessionManager()
