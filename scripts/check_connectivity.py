"""
============================================================================
Kraken Market Adapter v0.1.0
Kraken Connectivity Check - Exchange Link Verification
============================================================================

Input Constraints: Optional .env configuration
Side Effects: API calls to Kraken

PURPOSE
-------
Verify Kraken connectivity: prints the server time and, when
KRAKEN_API_KEY / KRAKEN_API_SECRET are configured, the account balances.

EXECUTION
---------
    python scripts/check_connectivity.py

============================================================================
"""

import sys
import logging
from decimal import Decimal
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from market_adapter.config import KrakenConfig, ConfigurationError
from market_adapter.exchange import KrakenMarket, KrakenError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("CONNECTIVITY")


def main() -> int:
    """Check Kraken connectivity and display balances."""
    print("=" * 60)
    print("KRAKEN MARKET ADAPTER - CONNECTIVITY CHECK")
    print("=" * 60)

    try:
        config = KrakenConfig.from_environment()
        market = KrakenMarket.from_config(config)
    except (ConfigurationError, KrakenError) as e:
        print(f"\nConfiguration invalid: {e}")
        return 2

    try:
        server_time = market.time()
        print(f"\nServer time: {server_time.isoformat()}")

        if not config.has_credentials:
            print("\nNo credentials configured - skipping private endpoints")
            return 0

        print("\nACCOUNT BALANCES")
        print("-" * 60)
        for currency, amount in sorted(market.balance().items()):
            if amount > Decimal("0"):
                print(f"   {currency}: {amount}")
        print("-" * 60)
        return 0

    except KrakenError as e:
        logger.error(f"Connectivity check failed | error={e}")
        return 1
    finally:
        market.client.close()


if __name__ == "__main__":
    sys.exit(main())
