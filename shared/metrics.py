"""Prometheus metrics for upstream calls, reconciliation and the API.

Exposed via /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, make_asgi_app

# Upstream
upstream_api_duration_seconds = Histogram(
    "upstream_api_duration_seconds",
    "Duration of wearable-data API calls",
    ["endpoint"],  # endpoint: sleep, daily_sleep
)

upstream_failures_total = Counter(
    "upstream_failures_total",
    "Failed wearable-data API calls",
    ["endpoint", "reason"],  # reason: timeout, http_status, transport, fixture
)

# Dashboard
reconciled_records_total = Counter(
    "reconciled_records_total",
    "Canonical sleep records produced for dashboard views",
    ["origin"],  # origin: detailed, summary, mock
)

notes_store_failures_total = Counter(
    "notes_store_failures_total",
    "Notes store operations that failed",
    ["operation"],
)

# API
api_requests_total = Counter(
    "api_requests_total",
    "Total API requests",
    ["endpoint", "method", "status_code"],
)

api_response_duration_seconds = Histogram(
    "api_response_duration_seconds",
    "Duration of API responses",
    ["endpoint"],
)


def create_metrics_app():
    """Create ASGI app for /metrics endpoint."""
    return make_asgi_app()
