"""
============================================================================
Kraken Market Adapter v0.1.0
Configuration
============================================================================

Environment variable parsing with type safety, defaults for optional
values and fail-closed validation.

ENVIRONMENT VARIABLES:
    - KRAKEN_API_KEY: API key (optional, public endpoints work without)
    - KRAKEN_API_SECRET: Base64 API secret (required with KRAKEN_API_KEY)
    - KRAKEN_OTP: Two-factor password for private calls (optional)
    - KRAKEN_TIMEOUT_SECONDS: HTTP timeout (default: 30)
    - KRAKEN_BASE_URL: API host (default: https://api.kraken.com)
    - KRAKEN_API_VERSION: Path version segment (default: 0)
    - KRAKEN_VALIDATE_ORDERS: Validate orders without placing them
      (default: false)

ERROR CODES:
    - KRK-CFG-001: Invalid configuration

============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import os

from dotenv import load_dotenv

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_BASE_URL = "https://api.kraken.com"
DEFAULT_API_VERSION = "0"
DEFAULT_VALIDATE_ORDERS = False

_TRUE_VALUES = ("true", "1", "yes", "on")


class ConfigurationError(Exception):
    """Raised when the adapter configuration is invalid."""

    error_code = "KRK-CFG-001"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"[{self.error_code}] {message}")


@dataclass
class KrakenConfig:
    """
    Kraken adapter configuration.

    The secret and the OTP are excluded from ``repr`` and ``to_dict``.
    """

    api_key: Optional[str] = None
    api_secret: Optional[str] = field(default=None, repr=False)
    otp: Optional[str] = field(default=None, repr=False)
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    validate_orders: bool = DEFAULT_VALIDATE_ORDERS

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def validate(self) -> None:
        """
        Validate configuration completeness.

        Raises:
            ConfigurationError: If any value is invalid (KRK-CFG-001)
        """
        errors: List[str] = []

        if self.timeout_seconds <= 0:
            errors.append(
                f"KRAKEN_TIMEOUT_SECONDS must be positive, got: {self.timeout_seconds}"
            )

        if bool(self.api_key) != bool(self.api_secret):
            errors.append(
                "KRAKEN_API_KEY and KRAKEN_API_SECRET must be set together"
            )

        if not self.base_url.startswith("https://"):
            errors.append(f"KRAKEN_BASE_URL must use https, got: {self.base_url}")

        if errors:
            error_msg = "Kraken configuration validation failed: " + "; ".join(errors)
            logger.error(f"[KRK-CFG-001] {error_msg}")
            raise ConfigurationError(error_msg)

        logger.info(
            f"[KRK-CONFIG] Configuration validated | "
            f"authenticated={self.has_credentials} | "
            f"timeout_seconds={self.timeout_seconds} | "
            f"validate_orders={self.validate_orders}"
        )

    @classmethod
    def from_environment(
        cls,
        validate: bool = True,
        load_env_file: bool = True
    ) -> "KrakenConfig":
        """
        Load configuration from environment variables (and ``.env``).

        Args:
            validate: Whether to validate after loading (default: True)
            load_env_file: Whether to read a ``.env`` file first

        Raises:
            ConfigurationError: If validation fails
        """
        if load_env_file:
            load_dotenv()

        timeout_str = os.environ.get(
            "KRAKEN_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)
        )
        try:
            timeout_seconds = float(timeout_str.strip())
        except ValueError:
            logger.warning(
                f"[KRK-CONFIG] Invalid KRAKEN_TIMEOUT_SECONDS value: {timeout_str}, "
                f"using default: {DEFAULT_TIMEOUT_SECONDS}"
            )
            timeout_seconds = DEFAULT_TIMEOUT_SECONDS

        validate_str = os.environ.get("KRAKEN_VALIDATE_ORDERS", "false")

        config = cls(
            api_key=os.environ.get("KRAKEN_API_KEY", "").strip() or None,
            api_secret=os.environ.get("KRAKEN_API_SECRET", "").strip() or None,
            otp=os.environ.get("KRAKEN_OTP", "").strip() or None,
            timeout_seconds=timeout_seconds,
            base_url=os.environ.get("KRAKEN_BASE_URL", DEFAULT_BASE_URL).strip(),
            api_version=os.environ.get("KRAKEN_API_VERSION", DEFAULT_API_VERSION).strip(),
            validate_orders=validate_str.lower().strip() in _TRUE_VALUES,
        )

        logger.info(
            f"[KRK-CONFIG] Loading configuration from environment | "
            f"KRAKEN_API_KEY={'set' if config.api_key else 'unset'} | "
            f"KRAKEN_TIMEOUT_SECONDS={config.timeout_seconds} | "
            f"KRAKEN_BASE_URL={config.base_url}"
        )

        if validate:
            config.validate()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Loggable view without secrets."""
        return {
            "authenticated": self.has_credentials,
            "otp_set": self.otp is not None,
            "timeout_seconds": self.timeout_seconds,
            "base_url": self.base_url,
            "api_version": self.api_version,
            "validate_orders": self.validate_orders,
        }
