"""Prometheus instrumentation for the Kraken adapter."""

from market_adapter.observability.metrics import (
    OUTCOME_SUCCESS,
    OUTCOME_RESPONSE_ERROR,
    OUTCOME_SERVER_ERROR,
    record_request,
    record_preflight_rejection,
)

__all__ = [
    'OUTCOME_SUCCESS',
    'OUTCOME_RESPONSE_ERROR',
    'OUTCOME_SERVER_ERROR',
    'record_request',
    'record_preflight_rejection',
]
