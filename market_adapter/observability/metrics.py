"""
============================================================================
Kraken Market Adapter v0.1.0
Prometheus Metrics - Request Outcomes
============================================================================

METRICS EXPOSED
---------------
- kraken_requests_total: Counter of requests by API method and outcome
- kraken_request_seconds: Histogram of round-trip duration by API method
- kraken_preflight_rejections_total: Orders stopped by the local minimum check

Outcomes: success, response_error, server_error.
Metric failures are logged and never raised into the request path.

============================================================================
"""

import logging

from prometheus_client import Counter, Histogram

# Configure module logger
logger = logging.getLogger(__name__)


OUTCOME_SUCCESS = "success"
OUTCOME_RESPONSE_ERROR = "response_error"
OUTCOME_SERVER_ERROR = "server_error"


REQUESTS_TOTAL = Counter(
    "kraken_requests_total",
    "Total number of Kraken API requests by method and outcome",
    ["method", "outcome"]
)

REQUEST_SECONDS = Histogram(
    "kraken_request_seconds",
    "Kraken API round-trip duration in seconds",
    ["method"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

PREFLIGHT_REJECTIONS = Counter(
    "kraken_preflight_rejections_total",
    "Orders rejected locally for being below the minimum order size",
    ["asset"]
)


def record_request(method: str, outcome: str, elapsed_seconds: float) -> None:
    """
    Record one classified request.

    Args:
        method: Kraken API method (e.g., "Balance")
        outcome: One of the OUTCOME_* constants
        elapsed_seconds: Wall time spent in the transport
    """
    try:
        REQUESTS_TOTAL.labels(method=method, outcome=outcome).inc()
        REQUEST_SECONDS.labels(method=method).observe(elapsed_seconds)
    except Exception as e:
        logger.error(
            "[OBS-001] Failed to record request metric | method=%s | error=%s",
            method, str(e)
        )


def record_preflight_rejection(asset: str) -> None:
    """Record an order stopped by the minimum-size pre-flight check."""
    try:
        PREFLIGHT_REJECTIONS.labels(asset=asset).inc()
    except Exception as e:
        logger.error(
            "[OBS-001] Failed to record preflight metric | asset=%s | error=%s",
            asset, str(e)
        )
