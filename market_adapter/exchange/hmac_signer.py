# ============================================================================
# Kraken Market Adapter v0.1.0
# HMAC Signer - Private Endpoint Authentication
# ============================================================================
#
# Purpose: Signs all private Kraken API requests
#
# Kraken API Signature Format:
#   message   = path_bytes + SHA256(nonce + urlencoded_body)
#   signature = base64(HMAC-SHA512(message, base64decode(api_secret)))
#
# MANDATE:
#   - Credentials NEVER appear in logs
#   - KRK-SEC-001 raised if the secret is missing or not valid base64
#
# ============================================================================

import base64
import binascii
import hashlib
import hmac
import logging
from typing import Dict

from market_adapter.exchange.exceptions import CredentialError

logger = logging.getLogger(__name__)


def decode_secret(secret: str) -> bytes:
    """
    Decode a base64 API secret into raw key bytes.

    Raises:
        CredentialError: If the secret is empty or not strict base64
    """
    if not secret:
        raise CredentialError("API secret is empty")
    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CredentialError("API secret is not valid base64") from e


def _signature(path: str, nonce: str, post_body: str, key: bytes) -> str:
    digest = hashlib.sha256((nonce + post_body).encode("utf-8")).digest()
    mac = hmac.new(key, path.encode("utf-8") + digest, hashlib.sha512)
    return base64.b64encode(mac.digest()).decode("ascii")


def sign(path: str, nonce: str, post_body: str, secret: str) -> str:
    """
    Compute the ``API-Sign`` value for a private request.

    Pure function: identical inputs always produce the identical signature.

    Args:
        path: URI path, e.g. "/0/private/Balance"
        nonce: Nonce string also present in ``post_body``
        post_body: URL-encoded request body
        secret: Base64 encoded API secret

    Returns:
        Base64 encoded HMAC-SHA512 signature

    Raises:
        CredentialError: If ``secret`` is not valid base64
    """
    return _signature(path, nonce, post_body, decode_secret(secret))


class KrakenSigner:
    """
    Holds the credential pair and produces authentication headers.

    The secret is decoded once at construction so malformed material is
    surfaced immediately instead of on the first private call.

    Example Usage:
        signer = KrakenSigner(api_key, api_secret)
        headers = signer.sign_request("/0/private/Balance", nonce, body)
    """

    def __init__(self, api_key: str, api_secret: str):
        if not api_key:
            raise CredentialError("API key is empty")
        self._api_key = api_key
        self._secret_key = decode_secret(api_secret)
        logger.debug(f"[KRK-SIGN] Signer initialized | api_key={self.get_redacted_key()}")

    def sign(self, path: str, nonce: str, post_body: str) -> str:
        """Signature for ``path`` with the held secret."""
        return _signature(path, nonce, post_body, self._secret_key)

    def sign_request(self, path: str, nonce: str, post_body: str) -> Dict[str, str]:
        """
        Generate the Kraken authentication headers.

        Returns:
            Dict with ``API-Key`` and ``API-Sign``
        """
        signature = self.sign(path, nonce, post_body)
        logger.debug(
            f"[KRK-SIGN] Request signed | path={path} | nonce={nonce} | "
            f"signature=[REDACTED]"
        )
        return {
            "API-Key": self._api_key,
            "API-Sign": signature,
        }

    def get_redacted_key(self) -> str:
        """First and last 4 characters of the API key, for logging."""
        if len(self._api_key) > 8:
            return f"{self._api_key[:4]}...{self._api_key[-4:]}"
        return "[REDACTED]"

    def __repr__(self) -> str:
        return f"KrakenSigner(api_key={self.get_redacted_key()!r})"
