# ============================================================================
# Kraken Market Adapter v0.1.0
# Exchange Error Taxonomy
# ============================================================================
#
# Error Codes:
#   - KRK-SRV-001: Transport or HTTP status failure (ServerError)
#   - KRK-API-001: Exchange rejected the request (ResponseError)
#   - KRK-SEC-001: Malformed or missing credentials (CredentialError)
#   - KRK-SYM-001: Symbol not known to the exchange (UnknownSymbolError)
#   - KRK-SYM-002: Pair string cannot be decomposed (UnparseablePairError)
#   - KRK-ORD-001: Order failed local validation (OrderValidationError)
#   - KRK-ORD-002: Order volume below the minimum size (OrderBelowMinimumError)
#
# ============================================================================

from decimal import Decimal
from typing import List, Optional, Sequence


class KrakenError(Exception):
    """Base exception for all Kraken adapter errors."""

    error_code = "KRK-000"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"{self.error_code}: {message}")


class ServerError(KrakenError):
    """
    The request never received a semantic answer from the API.

    Raised on connection failures, timeouts, non-2xx status codes and
    bodies that cannot be decoded into the response envelope.
    """

    error_code = "KRK-SRV-001"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None
    ):
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)


class ResponseError(KrakenError):
    """
    The API handled the request but reported one or more errors.

    The exchange's error strings are kept verbatim in ``errors`` so the
    caller can tell retryable conditions from terminal ones.
    """

    error_code = "KRK-API-001"

    def __init__(self, errors: Sequence[str], method: Optional[str] = None):
        self.errors: List[str] = list(errors)
        self.method = method
        super().__init__(", ".join(self.errors))


class CredentialError(KrakenError):
    """Raised when the API key or secret is missing or malformed."""

    error_code = "KRK-SEC-001"


class UnknownSymbolError(KrakenError):
    """Raised when a symbol cannot be matched against the exchange assets."""

    error_code = "KRK-SYM-001"

    def __init__(self, symbol: str, reason: str = "not available on the exchange"):
        self.symbol = symbol
        super().__init__(f"Unknown symbol '{symbol}': {reason}")


class UnparseablePairError(KrakenError):
    """Raised when an exchange pair string has no valid base/quote split."""

    error_code = "KRK-SYM-002"

    def __init__(self, pair_string: str):
        self.pair_string = pair_string
        super().__init__(f"Cannot split '{pair_string}' into known symbols")


class OrderValidationError(KrakenError):
    """Local order validation failed; nothing was sent to the exchange."""

    error_code = "KRK-ORD-001"


class OrderBelowMinimumError(OrderValidationError):
    """Raised by the pre-flight check when volume < minimum order size."""

    error_code = "KRK-ORD-002"

    def __init__(self, symbol: str, volume: Decimal, minimum: Decimal):
        self.symbol = symbol
        self.volume = volume
        self.minimum = minimum
        super().__init__(
            f"Order volume {volume} {symbol} is below the minimum of {minimum}"
        )
