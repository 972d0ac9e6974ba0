# ============================================================================
# Kraken Market Adapter v0.1.0
# HTTP Transport
# ============================================================================
#
# Purpose: Synchronous "POST form body over HTTPS" primitive
#
# The transport performs exactly one attempt per call. It does not
# interpret status codes or bodies; classification happens in the client.
# Connection failures and timeouts surface as requests exceptions.
#
# ============================================================================

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Raw HTTP outcome: status code and undecoded body."""
    status_code: int
    content: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpTransport:
    """
    ``requests.Session`` backed transport.

    Example Usage:
        with HttpTransport(timeout=10.0) as transport:
            response = transport.post(url, headers, body)
    """

    DEFAULT_TIMEOUT = 30.0
    USER_AGENT = "kraken-market-adapter/0.1.0"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        user_agent: str = USER_AGENT
    ):
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    def post(self, url: str, headers: Dict[str, str], body: str) -> TransportResponse:
        """
        POST ``body`` to ``url``.

        Raises:
            requests.RequestException: On connection failure or timeout
        """
        response = self._session.post(
            url,
            headers=headers,
            data=body.encode("utf-8"),
            timeout=self.timeout
        )
        logger.debug(
            f"[KRK-HTTP] POST {url} | status={response.status_code} | "
            f"bytes={len(response.content)}"
        )
        return TransportResponse(response.status_code, response.content)

    def close(self) -> None:
        """Close HTTP session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
