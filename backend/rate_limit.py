"""
Competitor Intel - slowapi limiter

Shared by main.py (exception handler + middleware) and the routers that
apply per-endpoint limits.
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# CSV import does many round trips per row; keep it well below the global rate
IMPORT_RATE_LIMIT = os.getenv("IMPORT_RATE_LIMIT", "10/minute")

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)
