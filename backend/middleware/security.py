"""Competitor Intel - Security Headers Middleware

The API returns JSON plus export downloads (csv, markdown, txt, xlsx and an
HTML table that is pasted into decks). Responses carry the shared-password
session cookie, so they must never be framed or sniffed into another type:

- Content-Security-Policy: self only; inline styles for the exported table
- X-Frame-Options: DENY
- X-Content-Type-Options: nosniff (export downloads keep their media type)
- Referrer-Policy, Permissions-Policy
- Cache-Control: no-store on /api/ responses (claims and exports are private)
- Strict-Transport-Security when served over HTTPS, so the eh_session
  cookie is not sent in clear after the first visit

SECURITY_HEADERS_ENABLED=false turns the middleware off (local debugging).
"""

import logging
import os

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


def is_security_headers_enabled() -> bool:
    """SECURITY_HEADERS_ENABLED, default true."""
    return os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() in ("true", "1", "yes")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamps the headers above onto every API and export response.

    The HTML export is a bare <table> with inline style attributes, hence
    style-src 'unsafe-inline'; nothing else loads scripts or remote assets.
    """

    CSP_POLICY = (
        "default-src 'self'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: blob:; "
        "frame-ancestors 'none'; "
        "form-action 'self'; "
        "base-uri 'self'"
    )

    def __init__(self, app, enabled: bool = True) -> None:
        super().__init__(app)
        self.enabled = enabled and is_security_headers_enabled()
        if not self.enabled:
            logger.info("SecurityHeadersMiddleware is DISABLED via SECURITY_HEADERS_ENABLED=false")

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if not self.enabled:
            return response

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
        response.headers["Content-Security-Policy"] = self.CSP_POLICY

        if request.url.path.startswith("/api/") and "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"

        # HSTS only behind HTTPS (direct or via proxy)
        forwarded_proto = request.headers.get("X-Forwarded-Proto", "")
        if forwarded_proto == "https" or request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
