# ============================================================================
# Kraken Market Adapter v0.1.0
# Kraken API Client - Request Protocol
# ============================================================================
#
# Purpose: Builds, signs, dispatches and classifies every Kraken request
#
# Per call:
#   1. Build    - URL-encode params (+ nonce and OTP for private endpoints)
#   2. Sign     - HMAC-SHA512 via KrakenSigner (private endpoints only)
#   3. Dispatch - one transport attempt, no retries in this layer
#   4. Classify - ServerError / ResponseError / result payload
#
# Error Codes:
#   - KRK-SRV-001: Transport or HTTP status failure
#   - KRK-API-001: Exchange reported errors in the response envelope
#   - KRK-SEC-001: Private call without usable credentials
#
# ============================================================================

import json
import time
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from market_adapter.exchange.decimal_gateway import DecimalGateway
from market_adapter.exchange.exceptions import (
    CredentialError,
    ResponseError,
    ServerError,
)
from market_adapter.exchange.hmac_signer import KrakenSigner
from market_adapter.exchange.nonce import NonceGenerator
from market_adapter.exchange.transport import HttpTransport, TransportResponse
from market_adapter.observability import metrics

logger = logging.getLogger(__name__)

Params = Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"


class EndpointKind(Enum):
    """Kraken endpoint families; the value is the URL path segment."""
    PUBLIC = "public"
    PRIVATE = "private"


class ResponseEnvelope(BaseModel):
    """Kraken response body: ``error`` list plus optional ``result``."""

    model_config = ConfigDict(extra="ignore")

    error: List[str] = Field(default_factory=list)
    result: Optional[Any] = None


def _wire_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return DecimalGateway.to_wire(value)
    if isinstance(value, (list, tuple)):
        return ",".join(_wire_value(v) for v in value)
    return str(value)


class KrakenClient:
    """
    Kraken REST API client.

    Holds the credentials, the nonce generator and the transport. Public
    endpoints work without credentials; private endpoints raise
    CredentialError when none are configured.

    Thread Safety: nonces are serialized by NonceGenerator; credentials are
    read-only after construction except the OTP, which is last-write-wins
    with a single writer.

    Example Usage:
        client = KrakenClient(api_key, api_secret)
        server_time = client.request(EndpointKind.PUBLIC, "Time")
        balances = client.request(EndpointKind.PRIVATE, "Balance")
    """

    DEFAULT_BASE_URL = "https://api.kraken.com"
    DEFAULT_API_VERSION = "0"

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        otp: Optional[str] = None,
        transport: Optional[Any] = None,
        nonce_generator: Optional[NonceGenerator] = None,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION
    ):
        """
        Args:
            api_key: Kraken API key (None for public-only use)
            api_secret: Base64 API secret (None for public-only use)
            otp: Two-factor password sent with every private call
            transport: Object with ``post(url, headers, body)``
                (default: HttpTransport)
            nonce_generator: Nonce source (default: NonceGenerator)
            base_url: API host
            api_version: Path version segment

        Raises:
            CredentialError: If only one of key/secret is given, or the
                secret is not valid base64
        """
        if bool(api_key) != bool(api_secret):
            raise CredentialError("API key and secret must be provided together")

        self._signer = KrakenSigner(api_key, api_secret) if api_key else None
        self._otp = otp or None
        self._transport = transport or HttpTransport()
        self._nonces = nonce_generator or NonceGenerator()
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version

        logger.info(
            f"[KRK-CLI] Client initialized | "
            f"authenticated={self._signer is not None} | "
            f"otp={'set' if self._otp else 'unset'} | base_url={self.base_url}"
        )

    # ========================================================================
    # Credentials
    # ========================================================================

    def set_otp(self, otp: Optional[str]) -> None:
        """Set/update the OTP relayed with private requests (2FA accounts)."""
        self._otp = otp or None
        logger.debug(f"[KRK-CLI] OTP {'updated' if self._otp else 'cleared'}")

    def is_authenticated(self) -> bool:
        """Check if client has credentials for private endpoints."""
        return self._signer is not None

    # ========================================================================
    # Request protocol
    # ========================================================================

    def path_for(self, kind: EndpointKind, method: str) -> str:
        """URI path, e.g. "/0/private/Balance"."""
        return f"/{self.api_version}/{kind.value}/{method}"

    def request(
        self,
        kind: EndpointKind,
        method: str,
        params: Params = None
    ) -> Any:
        """
        Execute one API call and return the ``result`` payload.

        Rate limiting, when needed, wraps the transport: dispatch is the
        only blocking point of a call.

        Args:
            kind: PUBLIC or PRIVATE endpoint family
            method: Kraken API method (e.g., "Ticker", "AddOrder")
            params: Request parameters, mapping or ordered pairs

        Returns:
            Decoded ``result`` object

        Raises:
            CredentialError: Private call without credentials
            ServerError: Transport failure, non-2xx status, bad envelope
            ResponseError: Non-empty ``error`` list
        """
        path = self.path_for(kind, method)
        fields = self._fields(params)
        headers = {"Content-Type": FORM_CONTENT_TYPE}

        if kind is EndpointKind.PRIVATE:
            if self._signer is None:
                raise CredentialError(
                    f"Authentication required for private method {method}"
                )
            nonce = self._nonces.next()
            fields.insert(0, ("nonce", nonce))
            otp = self._otp
            if otp:
                fields.append(("otp", otp))
            body = urlencode(fields)
            headers.update(self._signer.sign_request(path, nonce, body))
        else:
            body = urlencode(fields)

        url = f"{self.base_url}{path}"
        started = time.monotonic()
        try:
            response = self._transport.post(url, headers, body)
        except (requests.RequestException, OSError) as e:
            elapsed = time.monotonic() - started
            metrics.record_request(method, metrics.OUTCOME_SERVER_ERROR, elapsed)
            logger.error(
                f"[KRK-SRV-001] Transport failure | method={method} | "
                f"error={type(e).__name__}: {e}"
            )
            raise ServerError(f"Transport failure for {method}: {e}", cause=e) from e

        elapsed = time.monotonic() - started
        return self._classify(method, response, elapsed)

    def public(self, method: str, params: Params = None) -> Any:
        """Shorthand for a public endpoint call."""
        return self.request(EndpointKind.PUBLIC, method, params)

    def private(self, method: str, params: Params = None) -> Any:
        """Shorthand for a private endpoint call."""
        return self.request(EndpointKind.PRIVATE, method, params)

    # ========================================================================
    # Internal Methods
    # ========================================================================

    @staticmethod
    def _fields(params: Params) -> List[Tuple[str, str]]:
        if params is None:
            return []
        items = params.items() if isinstance(params, Mapping) else params
        return [(key, _wire_value(value)) for key, value in items if value is not None]

    def _classify(
        self,
        method: str,
        response: TransportResponse,
        elapsed: float
    ) -> Any:
        if not 200 <= response.status_code < 300:
            metrics.record_request(method, metrics.OUTCOME_SERVER_ERROR, elapsed)
            logger.error(
                f"[KRK-SRV-001] HTTP status failure | method={method} | "
                f"status={response.status_code}"
            )
            raise ServerError(
                f"HTTP {response.status_code} for {method}",
                status_code=response.status_code
            )

        try:
            payload = json.loads(response.content, parse_float=Decimal)
            envelope = ResponseEnvelope.model_validate(payload)
        except (ValueError, ValidationError) as e:
            metrics.record_request(method, metrics.OUTCOME_SERVER_ERROR, elapsed)
            logger.error(
                f"[KRK-SRV-001] Invalid response envelope | method={method} | "
                f"status={response.status_code} | error={e}"
            )
            raise ServerError(
                f"Invalid response body for {method}",
                status_code=response.status_code,
                cause=e
            ) from e

        if envelope.error:
            metrics.record_request(method, metrics.OUTCOME_RESPONSE_ERROR, elapsed)
            logger.warning(
                f"[KRK-API-001] Exchange rejected request | method={method} | "
                f"errors={envelope.error}"
            )
            raise ResponseError(envelope.error, method=method)

        if envelope.result is None:
            metrics.record_request(method, metrics.OUTCOME_SERVER_ERROR, elapsed)
            logger.error(f"[KRK-SRV-001] Missing result | method={method}")
            raise ServerError(
                f"Response for {method} carries neither error nor result",
                status_code=response.status_code
            )

        metrics.record_request(method, metrics.OUTCOME_SUCCESS, elapsed)
        logger.debug(
            f"[KRK-CLI] Request completed | method={method} | "
            f"elapsed={elapsed:.3f}s"
        )
        return envelope.result

    def close(self) -> None:
        """Close the transport if it holds resources."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False
