"""
HTTP metrics middleware for Competitor Intel.

Tracks request count and duration per method/path/status.
Passes straight through when METRICS_ENABLED=false (default).
"""

import time
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collects request count and duration by method, path and status."""

    _SKIP_PATHS = frozenset({"/health", "/metrics", "/favicon.ico"})

    # /api/claims/42/verify -> /api/claims/{id}/verify
    _NORMALIZE_PREFIXES = (
        "/api/competitors/",
        "/api/sources/",
        "/api/claims/",
    )

    def _normalize_path(self, path: str) -> str:
        """Normalize paths with IDs to prevent high-cardinality labels."""
        for prefix in self._NORMALIZE_PREFIXES:
            if path.startswith(prefix):
                rest = path[len(prefix):]
                if rest and "/" not in rest:
                    return prefix + "{id}"
                elif rest and "/" in rest:
                    parts = rest.split("/", 1)
                    return prefix + "{id}/" + parts[1]
        return path

    async def dispatch(self, request: Request, call_next):
        from metrics import METRICS_ENABLED, track_request

        if not METRICS_ENABLED:
            return await call_next(request)

        start = time.time()
        response = await call_next(request)
        duration = time.time() - start

        path = request.url.path
        if path not in self._SKIP_PATHS:
            track_request(request.method, self._normalize_path(path), response.status_code, duration)

        return response
