# ============================================================================
# Kraken Market Adapter v0.1.0
# Exchange Integration Module - Kraken Connectivity
# ============================================================================
#
# Components:
#   - NonceGenerator: Strictly increasing 19-digit request nonces
#   - KrakenSigner: HMAC-SHA512 request signing
#   - PairNormalizer: Canonical <-> Kraken symbol translation and minimums
#   - DecimalGateway: Ensures all financial data uses decimal.Decimal
#   - HttpTransport: requests-based POST primitive
#   - KrakenClient: Request protocol and error classification
#   - KrakenMarket: Market capability implementation
#
# ============================================================================

from market_adapter.exchange.exceptions import (
    KrakenError,
    ServerError,
    ResponseError,
    CredentialError,
    UnknownSymbolError,
    UnparseablePairError,
    OrderValidationError,
    OrderBelowMinimumError,
)
from market_adapter.exchange.nonce import NonceGenerator
from market_adapter.exchange.hmac_signer import KrakenSigner, sign
from market_adapter.exchange.decimal_gateway import DecimalGateway
from market_adapter.exchange.pair_normalizer import (
    PairNormalizer,
    InternalSymbolPair,
    DEFAULT_ALIASES,
    DEFAULT_MINIMUM_LIMITS,
)
from market_adapter.exchange.transport import HttpTransport, TransportResponse
from market_adapter.exchange.kraken_client import (
    KrakenClient,
    EndpointKind,
    ResponseEnvelope,
)
from market_adapter.exchange.kraken_market import KrakenMarket

__all__ = [
    # Errors
    'KrakenError',
    'ServerError',
    'ResponseError',
    'CredentialError',
    'UnknownSymbolError',
    'UnparseablePairError',
    'OrderValidationError',
    'OrderBelowMinimumError',
    # Nonce / Signing
    'NonceGenerator',
    'KrakenSigner',
    'sign',
    # Decimal Gateway
    'DecimalGateway',
    # Pair Normalizer
    'PairNormalizer',
    'InternalSymbolPair',
    'DEFAULT_ALIASES',
    'DEFAULT_MINIMUM_LIMITS',
    # Transport / Client
    'HttpTransport',
    'TransportResponse',
    'KrakenClient',
    'EndpointKind',
    'ResponseEnvelope',
    # Market
    'KrakenMarket',
]
