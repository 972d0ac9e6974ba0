"""
Shared fixtures for the Kraken adapter tests.

The network is never touched: every client is wired to a RecordingTransport
that replays queued responses and records each outgoing request.
"""

import base64
import json
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from market_adapter.exchange.kraken_client import KrakenClient
from market_adapter.exchange.kraken_market import KrakenMarket
from market_adapter.exchange.nonce import NonceGenerator
from market_adapter.exchange.pair_normalizer import PairNormalizer
from market_adapter.exchange.transport import TransportResponse


# Asset code -> altname, as returned by /0/public/Assets
STATIC_ASSETS: Dict[str, str] = {
    "XXBT": "XBT",
    "ZUSD": "USD",
    "ZEUR": "EUR",
    "XETH": "ETH",
    "XLTC": "LTC",
    "USDT": "USDT",
    "ADA": "ADA",
    "DOT": "DOT",
}

TEST_API_KEY = "test-api-key-0123456789"
TEST_API_SECRET = base64.b64encode(b"kraken-test-secret-material").decode()


@dataclass
class RecordedCall:
    url: str
    headers: Dict[str, str]
    body: str


class RecordingTransport:
    """Transport stub: replays queued responses, records every call."""

    def __init__(self) -> None:
        self.calls: List[RecordedCall] = []
        self._queue: List[Any] = []
        self.closed = False

    def queue(
        self,
        result: Any = None,
        error: Optional[List[str]] = None,
        status: int = 200,
        content: Optional[bytes] = None
    ) -> "RecordingTransport":
        if content is None:
            envelope: Dict[str, Any] = {"error": error or []}
            if result is not None:
                envelope["result"] = result
            content = json.dumps(envelope).encode()
        self._queue.append(TransportResponse(status, content))
        return self

    def queue_exception(self, exc: BaseException) -> "RecordingTransport":
        self._queue.append(exc)
        return self

    def post(self, url: str, headers: Dict[str, str], body: str) -> TransportResponse:
        self.calls.append(RecordedCall(url, dict(headers), body))
        if not self._queue:
            raise AssertionError(f"Unexpected request to {url}")
        item = self._queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def fixed_clock():
    """Clock advancing one second per reading, starting at 1700000000 s."""
    state = {"now": 1_700_000_000 * 10**9}

    def clock() -> int:
        state["now"] += 10**9
        return state["now"]

    return clock


@pytest.fixture
def client(transport, fixed_clock) -> KrakenClient:
    return KrakenClient(
        api_key=TEST_API_KEY,
        api_secret=TEST_API_SECRET,
        transport=transport,
        nonce_generator=NonceGenerator(clock_ns=fixed_clock),
    )


@pytest.fixture
def public_client(transport) -> KrakenClient:
    return KrakenClient(transport=transport)


@pytest.fixture
def normalizer() -> PairNormalizer:
    return PairNormalizer(asset_loader=lambda: STATIC_ASSETS)


@pytest.fixture
def market(client, normalizer) -> KrakenMarket:
    return KrakenMarket(client, normalizer=normalizer)
