# ============================================================================
# Kraken Market Adapter v0.1.0
# Canonical Market Entities
# ============================================================================
#
# Exchange-independent types returned by every Market implementation.
# All financial values are decimal.Decimal.
#
# ============================================================================

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrencyPair:
    """
    Ordered (base, quote) pair of canonical asset symbols, e.g. BTC/USD.

    Symbols are upper-cased on construction.
    """
    base: str
    quote: str

    def __post_init__(self) -> None:
        if not self.base or not self.quote:
            raise ValueError("CurrencyPair requires both base and quote")
        object.__setattr__(self, "base", self.base.strip().upper())
        object.__setattr__(self, "quote", self.quote.strip().upper())

    @classmethod
    def parse(cls, text: str, separator: str = "/") -> "CurrencyPair":
        """Build a pair from 'BTC/USD'-style text."""
        parts = text.split(separator)
        if len(parts) != 2:
            raise ValueError(f"Expected BASE{separator}QUOTE, got {text!r}")
        return cls(parts[0], parts[1])

    def __str__(self) -> str:
        return f"{self.base}/{self.quote}"


class OrderSide(str, Enum):
    """Order direction."""
    BUY = "buy"
    SELL = "sell"


class OrderType(str, Enum):
    """
    Order types as named by the exchange.

    Values the adapter does not know map to UNKNOWN so that order history
    containing newer types can still be read. UNKNOWN orders cannot be
    placed.
    """
    MARKET = "market"
    LIMIT = "limit"
    STOP_LOSS = "stop-loss"
    TAKE_PROFIT = "take-profit"
    STOP_LOSS_LIMIT = "stop-loss-limit"
    TAKE_PROFIT_LIMIT = "take-profit-limit"
    TRAILING_STOP = "trailing-stop"
    TRAILING_STOP_LIMIT = "trailing-stop-limit"
    ICEBERG = "iceberg"
    SETTLE_POSITION = "settle-position"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        logger.warning(f"[KRK-MKT] Unrecognized order type | value={value}")
        return cls.UNKNOWN


class OrderStatus(str, Enum):
    """Order lifecycle as reported by the exchange."""
    NEW = "new"
    VALIDATED = "validated"
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"
    CANCELED = "canceled"
    EXPIRED = "expired"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        logger.warning(f"[KRK-MKT] Unrecognized order status | value={value}")
        return cls.UNKNOWN


@dataclass
class Coin:
    """An asset supported by the exchange."""
    symbol: str
    exchange_code: str
    decimals: int
    display_decimals: int
    status: str = "enabled"


@dataclass
class DepositInfo:
    """Deposit conditions for one currency."""
    currency: str
    method: str
    fee: Decimal
    min_limit: Optional[Decimal] = None
    max_limit: Optional[Decimal] = None
    address_generation: bool = False


@dataclass
class MarketInfo:
    """Trading conditions for one pair."""
    pair: CurrencyPair
    exchange_name: str
    price_decimals: int
    volume_decimals: int
    taker_fee_pct: Decimal
    maker_fee_pct: Decimal
    min_limit: Optional[Decimal] = None
    min_cost: Optional[Decimal] = None


@dataclass
class Ticker:
    """Best bid/ask snapshot for a pair."""
    pair: CurrencyPair
    bid: Decimal
    ask: Decimal
    last: Decimal
    volume_24h: Decimal
    high_24h: Decimal
    low_24h: Decimal
    time: datetime


@dataclass
class BookEntry:
    """One price level of an order book."""
    price: Decimal
    volume: Decimal
    time: datetime


@dataclass
class OrderBook:
    """Bids (best first) and asks (best first) for a pair."""
    pair: CurrencyPair
    bids: List[BookEntry] = field(default_factory=list)
    asks: List[BookEntry] = field(default_factory=list)


@dataclass
class Order:
    """
    A spot order.

    Callers fill ``pair``, ``side``, ``order_type``, ``volume`` and, for
    limit orders, ``price``. The remaining fields are filled by the market
    once the order has been placed or fetched.
    """
    pair: CurrencyPair
    side: OrderSide
    order_type: OrderType
    volume: Decimal
    price: Optional[Decimal] = None
    txid: Optional[str] = None
    status: OrderStatus = OrderStatus.NEW
    executed_volume: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")
    fee: Decimal = Decimal("0")
    description: Optional[str] = None
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
