# ============================================================================
# Kraken Market Adapter v0.1.0
# Market Capability Interface
# ============================================================================
#
# Shared by every exchange adapter. Each method is a blocking call that
# returns canonical entities from market_adapter.types.
#
# ============================================================================

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Union

from market_adapter.types import (
    Coin,
    CurrencyPair,
    DepositInfo,
    MarketInfo,
    Order,
    OrderBook,
    Ticker,
)


class Market(ABC):
    """Uniform trading capability surface across exchanges."""

    @abstractmethod
    def time(self) -> datetime:
        """Server time (UTC)."""

    @abstractmethod
    def coins(self) -> Dict[str, Coin]:
        """All currencies the exchange supports, keyed by canonical symbol."""

    @abstractmethod
    def deposit_info(self, currency: str) -> DepositInfo:
        """Current deposit conditions for ``currency``."""

    @abstractmethod
    def info(
        self, pair: Optional[CurrencyPair] = None
    ) -> Union[List[MarketInfo], MarketInfo]:
        """Market info for every pair, or for ``pair`` only."""

    @abstractmethod
    def balance(
        self, currency: Optional[str] = None
    ) -> Union[Dict[str, Decimal], Decimal]:
        """Account balance for every currency, or for ``currency`` only."""

    @abstractmethod
    def ticker(self, pair: CurrencyPair) -> Ticker:
        """Ticker for ``pair`` at the current time."""

    @abstractmethod
    def order_book(self, pair: CurrencyPair) -> OrderBook:
        """Order book for ``pair``."""

    @abstractmethod
    def closed_orders(self) -> List[Order]:
        """Closed orders of the account."""

    @abstractmethod
    def open_orders(self) -> List[Order]:
        """Open orders of the account."""

    @abstractmethod
    def place(self, order: Order) -> Order:
        """
        Place ``order`` using its meaningful fields and fill the remaining
        ones once the exchange accepted it.
        """

    @abstractmethod
    def cancel(self, order: Order) -> Order:
        """Cancel the order identified by ``order.txid``."""
