"""
Kraken Market Adapter.

Exposes Kraken's public and private REST API behind the exchange-independent
``Market`` capability interface.
"""

from market_adapter.config import KrakenConfig, ConfigurationError
from market_adapter.market import Market
from market_adapter.types import (
    CurrencyPair,
    Coin,
    DepositInfo,
    MarketInfo,
    Ticker,
    BookEntry,
    OrderBook,
    Order,
    OrderSide,
    OrderType,
    OrderStatus,
)

__all__ = [
    'KrakenConfig',
    'ConfigurationError',
    'Market',
    'CurrencyPair',
    'Coin',
    'DepositInfo',
    'MarketInfo',
    'Ticker',
    'BookEntry',
    'OrderBook',
    'Order',
    'OrderSide',
    'OrderType',
    'OrderStatus',
]

__version__ = '0.1.0'
