"""
Competitor Intel - Prometheus Metrics Module

All metrics default to OFF (METRICS_ENABLED=false). When disabled every metric
is a _NoOpMetric, so call sites never branch.

Usage:
    from metrics import track_request, track_import, track_export
    track_request("GET", "/api/matrix", 200, 0.045)
    track_import(stats.to_dict())
    track_export("csv")
"""

import os
import time
import logging
from typing import Dict, Any

from prometheus_client import (  # noqa: F401
    Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
)

logger = logging.getLogger(__name__)

METRICS_ENABLED = os.environ.get("METRICS_ENABLED", "false").lower() == "true"


class _NoOpMetric:
    """No-op metric that silently discards all operations."""

    def labels(self, *args, **kwargs):
        return self

    def inc(self, amount=1):
        pass

    def observe(self, amount):
        pass


if METRICS_ENABLED:
    logger.info("Prometheus metrics enabled")

    # HTTP metrics
    http_requests_total = Counter(
        "http_requests_total",
        "Total HTTP requests",
        ["method", "path", "status"]
    )
    http_request_duration = Histogram(
        "http_request_duration_seconds",
        "HTTP request duration in seconds",
        ["method", "path"],
        buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
    )

    # CSV import metrics
    csv_imports_total = Counter(
        "csv_imports_total",
        "CSV import attempts",
        ["result"]
    )
    csv_import_rows_created = Counter(
        "csv_import_rows_created_total",
        "Rows created by CSV imports",
        ["entity"]
    )

    # Export metrics
    matrix_exports_total = Counter(
        "matrix_exports_total",
        "Comparison matrix exports",
        ["format"]
    )
else:
    http_requests_total = _NoOpMetric()
    http_request_duration = _NoOpMetric()
    csv_imports_total = _NoOpMetric()
    csv_import_rows_created = _NoOpMetric()
    matrix_exports_total = _NoOpMetric()


# --- Convenience functions ---

# In-memory counters for the JSON fallback summary
_internal_counters: Dict[str, Any] = {
    "http_requests": 0,
    "csv_imports": 0,
    "csv_imports_rejected": 0,
    "exports": 0,
    "started_at": time.time(),
}


def track_request(method: str, path: str, status: int, duration: float) -> None:
    """Track an HTTP request."""
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_duration.labels(method=method, path=path).observe(duration)
    _internal_counters["http_requests"] += 1


def track_import(stats: Dict[str, int]) -> None:
    """Track a successful CSV import and what it created."""
    csv_imports_total.labels(result="success").inc()
    csv_import_rows_created.labels(entity="competitor").inc(stats.get("competitors_created", 0))
    csv_import_rows_created.labels(entity="source").inc(stats.get("sources_created", 0))
    csv_import_rows_created.labels(entity="claim").inc(stats.get("claims_created", 0))
    _internal_counters["csv_imports"] += 1


def track_import_rejected() -> None:
    csv_imports_total.labels(result="rejected").inc()
    _internal_counters["csv_imports_rejected"] += 1


def track_export(fmt: str) -> None:
    matrix_exports_total.labels(format=fmt).inc()
    _internal_counters["exports"] += 1


def get_metrics_summary() -> Dict[str, Any]:
    """Return a JSON summary of metrics (used when Prometheus export is off)."""
    uptime = time.time() - _internal_counters["started_at"]
    return {
        "metrics_enabled": METRICS_ENABLED,
        "uptime_seconds": round(uptime, 1),
        "http_requests_total": _internal_counters["http_requests"],
        "csv_imports_total": _internal_counters["csv_imports"],
        "csv_imports_rejected": _internal_counters["csv_imports_rejected"],
        "exports_total": _internal_counters["exports"],
    }
