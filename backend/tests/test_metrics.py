"""
Competitor Intel - Metrics Tests

No-op behaviour when METRICS_ENABLED=false, the JSON summary counters and
path normalisation in MetricsMiddleware.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

pytestmark = pytest.mark.timeout(20)


class TestNoOpMetric:

    def test_chainable(self):
        from metrics import _NoOpMetric
        metric = _NoOpMetric()
        assert metric.labels(method="GET") is metric
        metric.inc()
        metric.observe(0.5)


class TestSummary:

    def test_track_functions_update_summary(self):
        import metrics

        before = metrics.get_metrics_summary()
        metrics.track_request("GET", "/api/matrix", 200, 0.01)
        metrics.track_import({"competitors_created": 1, "sources_created": 2, "claims_created": 3})
        metrics.track_import_rejected()
        metrics.track_export("csv")
        after = metrics.get_metrics_summary()

        assert after["http_requests_total"] == before["http_requests_total"] + 1
        assert after["csv_imports_total"] == before["csv_imports_total"] + 1
        assert after["csv_imports_rejected"] == before["csv_imports_rejected"] + 1
        assert after["exports_total"] == before["exports_total"] + 1

    def test_metrics_endpoint_json_when_disabled(self, test_client):
        data = test_client.get("/metrics").json()
        assert data["metrics_enabled"] is False
        assert "uptime_seconds" in data


class TestPathNormalisation:

    @pytest.mark.parametrize("path, expected", [
        ("/api/competitors/12", "/api/competitors/{id}"),
        ("/api/competitors/12/claims", "/api/competitors/{id}/claims"),
        ("/api/claims/7/verify", "/api/claims/{id}/verify"),
        ("/api/sources/3", "/api/sources/{id}"),
        ("/api/matrix", "/api/matrix"),
    ])
    def test_normalize(self, path, expected):
        from middleware.metrics import MetricsMiddleware
        middleware = MetricsMiddleware(app=None)
        assert middleware._normalize_path(path) == expected
