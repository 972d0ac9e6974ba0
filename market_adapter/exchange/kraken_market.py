# ============================================================================
# Kraken Market Adapter v0.1.0
# Kraken Market - Market Capability Implementation
# ============================================================================
#
# Purpose: Maps the Market interface onto Kraken REST endpoints
#
# Every method gathers and normalizes its inputs, performs the call through
# KrakenClient and maps the result into canonical entities. Errors from the
# client propagate unchanged.
#
# Margin trading is not supported.
#
# ============================================================================

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union

from market_adapter.config import KrakenConfig
from market_adapter.exchange.decimal_gateway import DecimalGateway
from market_adapter.exchange.exceptions import (
    OrderBelowMinimumError,
    OrderValidationError,
    UnknownSymbolError,
)
from market_adapter.exchange.kraken_client import KrakenClient
from market_adapter.exchange.pair_normalizer import PairNormalizer
from market_adapter.exchange.transport import HttpTransport
from market_adapter.market import Market
from market_adapter.observability import metrics
from market_adapter.types import (
    BookEntry,
    Coin,
    CurrencyPair,
    DepositInfo,
    MarketInfo,
    Order,
    OrderBook,
    OrderSide,
    OrderStatus,
    OrderType,
    Ticker,
)

logger = logging.getLogger(__name__)

# Kraken lists dark pool pairs with this suffix
DARK_POOL_SUFFIX = ".d"

# Kraken returns at most this many closed orders per page
CLOSED_ORDERS_PAGE_SIZE = 50

_PRICED_TYPES = frozenset({
    OrderType.LIMIT,
    OrderType.STOP_LOSS,
    OrderType.TAKE_PROFIT,
    OrderType.STOP_LOSS_LIMIT,
    OrderType.TAKE_PROFIT_LIMIT,
    OrderType.TRAILING_STOP,
    OrderType.TRAILING_STOP_LIMIT,
    OrderType.ICEBERG,
})

# Readable in order history but never submitted
_UNPLACEABLE_TYPES = frozenset({
    OrderType.SETTLE_POSITION,
    OrderType.UNKNOWN,
})


def _utc(timestamp: Any) -> Optional[datetime]:
    if timestamp is None or Decimal(str(timestamp)) == 0:
        return None
    return datetime.fromtimestamp(float(timestamp), tz=timezone.utc)


class KrakenMarket(Market):
    """
    Kraken implementation of the Market capability surface.

    Example Usage:
        market = KrakenMarket.from_config(KrakenConfig.from_environment())
        ticker = market.ticker(CurrencyPair("BTC", "USD"))
        order = market.place(Order(
            pair=CurrencyPair("BTC", "USD"),
            side=OrderSide.BUY,
            order_type=OrderType.LIMIT,
            volume=Decimal("0.01"),
            price=Decimal("25000"),
        ))
    """

    def __init__(
        self,
        client: KrakenClient,
        normalizer: Optional[PairNormalizer] = None,
        validate_orders: bool = False
    ):
        """
        Args:
            client: Configured KrakenClient
            normalizer: Pair normalizer (default: one loading the Assets
                endpoint through ``client``)
            validate_orders: Send ``validate=true`` with AddOrder so the
                exchange checks orders without placing them
        """
        self.client = client
        self.normalizer = normalizer or PairNormalizer(asset_loader=self._load_asset_names)
        self.validate_orders = validate_orders
        self.gateway = DecimalGateway()

    @classmethod
    def from_config(cls, config: KrakenConfig) -> "KrakenMarket":
        """Wire transport, client and normalizer from configuration."""
        client = KrakenClient(
            api_key=config.api_key,
            api_secret=config.api_secret,
            otp=config.otp,
            transport=HttpTransport(timeout=config.timeout_seconds),
            base_url=config.base_url,
            api_version=config.api_version,
        )
        return cls(client, validate_orders=config.validate_orders)

    def set_otp(self, otp: Optional[str]) -> None:
        """Set/update the OTP for private requests when 2FA is enabled."""
        self.client.set_otp(otp)

    def _load_asset_names(self) -> Dict[str, str]:
        assets = self.client.public("Assets")
        return {code: info.get("altname", code) for code, info in assets.items()}

    # ========================================================================
    # Public Endpoints
    # ========================================================================

    def time(self) -> datetime:
        """Server time from ``/public/Time``."""
        result = self.client.public("Time")
        return datetime.fromtimestamp(int(result["unixtime"]), tz=timezone.utc)

    def coins(self) -> Dict[str, Coin]:
        """Every asset listed by ``/public/Assets``, keyed by canonical symbol."""
        assets = self.client.public("Assets")
        coins = {}
        for code, info in assets.items():
            symbol = self.normalizer.to_canonical_asset(code)
            coins[symbol] = Coin(
                symbol=symbol,
                exchange_code=code,
                decimals=int(info.get("decimals", 0)),
                display_decimals=int(info.get("display_decimals", 0)),
                status=info.get("status", "enabled"),
            )
        logger.debug(f"[KRK-MKT] Coins fetched | count={len(coins)}")
        return coins

    def info(
        self, pair: Optional[CurrencyPair] = None
    ) -> Union[List[MarketInfo], MarketInfo]:
        """
        Market info from ``/public/AssetPairs``.

        Without ``pair`` every tradable pair is returned; with ``pair`` only
        that one.
        """
        if pair is None:
            result = self.client.public("AssetPairs")
            infos = []
            for name, data in result.items():
                if name.endswith(DARK_POOL_SUFFIX):
                    continue
                infos.append(self._market_info(name, data))
            logger.debug(f"[KRK-MKT] Market info fetched | pairs={len(infos)}")
            return infos

        internal = self.normalizer.to_internal(pair)
        result = self.client.public("AssetPairs", {"pair": internal.joined})
        name, data = next(iter(result.items()))
        return self._market_info(name, data, pair)

    def ticker(self, pair: CurrencyPair) -> Ticker:
        """Best bid/ask and 24h stats from ``/public/Ticker``."""
        internal = self.normalizer.to_internal(pair)
        result = self.client.public("Ticker", {"pair": internal.joined})
        data = next(iter(result.values()))

        return Ticker(
            pair=pair,
            bid=self.gateway.to_price(data["b"][0], "b"),
            ask=self.gateway.to_price(data["a"][0], "a"),
            last=self.gateway.to_price(data["c"][0], "c"),
            volume_24h=self.gateway.to_volume(data["v"][1], "v"),
            high_24h=self.gateway.to_price(data["h"][1], "h"),
            low_24h=self.gateway.to_price(data["l"][1], "l"),
            time=datetime.now(timezone.utc),
        )

    def order_book(self, pair: CurrencyPair, count: Optional[int] = None) -> OrderBook:
        """
        Order book from ``/public/Depth``.

        Args:
            pair: Canonical pair
            count: Maximum number of levels per side (exchange default if None)
        """
        internal = self.normalizer.to_internal(pair)
        result = self.client.public("Depth", {"pair": internal.joined, "count": count})
        data = next(iter(result.values()))

        book = OrderBook(
            pair=pair,
            bids=[self._book_entry(level) for level in data.get("bids", [])],
            asks=[self._book_entry(level) for level in data.get("asks", [])],
        )
        logger.debug(
            f"[KRK-MKT] Order book fetched | pair={pair} | "
            f"bids={len(book.bids)} | asks={len(book.asks)}"
        )
        return book

    # ========================================================================
    # Private Endpoints
    # ========================================================================

    def deposit_info(self, currency: str) -> DepositInfo:
        """
        Deposit conditions from ``/private/DepositMethods``.

        Raises:
            UnknownSymbolError: If the currency is unknown or has no method
        """
        asset = self.normalizer.to_internal_symbol(currency)
        methods = self.client.private("DepositMethods", {"asset": asset})
        if not methods:
            raise UnknownSymbolError(currency, "no deposit method available")

        method = methods[0]
        limit = method.get("limit", False)
        minimum = method.get("minimum")
        return DepositInfo(
            currency=self.normalizer.to_canonical_asset(asset),
            method=method.get("method", ""),
            fee=self.gateway.to_volume(method.get("fee"), "fee"),
            min_limit=self.gateway.to_volume(minimum, "minimum") if minimum is not None else None,
            max_limit=None if limit is False else self.gateway.to_volume(limit, "limit"),
            address_generation=bool(method.get("gen-address", False)),
        )

    def balance(
        self, currency: Optional[str] = None
    ) -> Union[Dict[str, Decimal], Decimal]:
        """
        Account balances from ``/private/Balance``.

        Without ``currency`` all balances keyed by canonical symbol are
        returned; with ``currency`` its amount, zero if the account holds
        none.

        Raises:
            UnknownSymbolError: If ``currency`` is not listed by the exchange
        """
        canonical = None
        if currency is not None:
            # XBT, XXBT and BTC all resolve to the BTC balance
            canonical = self.normalizer.to_canonical_asset(
                self.normalizer.to_internal_symbol(currency)
            )

        result = self.client.private("Balance")
        balances: Dict[str, Decimal] = {}
        for code, amount in result.items():
            symbol = self.normalizer.to_canonical_asset(code)
            value = self.gateway.to_volume(amount, code)
            balances[symbol] = balances.get(symbol, Decimal("0")) + value

        logger.info(f"[KRK-MKT] Balances fetched | currencies={len(balances)}")

        if canonical is None:
            return balances
        return balances.get(canonical, self.gateway.to_volume(0))

    def open_orders(self) -> List[Order]:
        """Open orders from ``/private/OpenOrders``."""
        result = self.client.private("OpenOrders")
        return self._orders(result.get("open", {}))

    def closed_orders(self) -> List[Order]:
        """
        Complete closed order history from ``/private/ClosedOrders``.

        The exchange pages results; pages are fetched until ``count`` orders
        have been collected.
        """
        collected: Dict[str, Any] = {}
        offset = 0
        while True:
            result = self.client.private("ClosedOrders", {"ofs": offset})
            page = result.get("closed", {})
            collected.update(page)
            offset += len(page)
            total = int(result.get("count", 0))
            if not page or offset >= total:
                break
            logger.debug(f"[KRK-MKT] Closed orders page | offset={offset} | total={total}")
        return self._orders(collected)

    def place(self, order: Order) -> Order:
        """
        Place ``order`` through ``/private/AddOrder``.

        The order is validated locally first (known pair, positive volume,
        price for priced types, minimum order size); a failure raises before
        any network call. On success ``txid``, ``status`` and
        ``description`` are filled in.

        Raises:
            UnknownSymbolError: Unknown pair leg or no minimum on record
            OrderBelowMinimumError: Volume below the minimum order size
            OrderValidationError: Missing price, non-positive volume or a
                type that cannot be submitted (settle-position, unknown)
        """
        internal = self.normalizer.to_internal(order.pair)
        self._preflight(order)

        params = [
            ("pair", internal.joined),
            ("type", order.side.value),
            ("ordertype", order.order_type.value),
            ("volume", order.volume),
            ("price", order.price if order.order_type in _PRICED_TYPES else None),
            ("validate", True if self.validate_orders else None),
        ]
        result = self.client.private("AddOrder", params)

        order.description = result.get("descr", {}).get("order")
        txids = result.get("txid") or []
        if txids:
            order.txid = txids[0]
            order.status = OrderStatus.OPEN
        else:
            order.status = OrderStatus.VALIDATED

        logger.info(
            f"[KRK-MKT] Order placed | pair={order.pair} | side={order.side.value} | "
            f"type={order.order_type.value} | volume={order.volume} | "
            f"txid={order.txid} | status={order.status.value}"
        )
        return order

    def cancel(self, order: Order) -> Order:
        """
        Cancel the order identified by ``order.txid`` via ``/private/CancelOrder``.

        Raises:
            OrderValidationError: If the order has no txid
        """
        if not order.txid:
            raise OrderValidationError("Cannot cancel an order without txid")

        result = self.client.private("CancelOrder", {"txid": order.txid})
        order.status = OrderStatus.CANCELED
        logger.info(
            f"[KRK-MKT] Order canceled | txid={order.txid} | "
            f"count={result.get('count')}"
        )
        return order

    # ========================================================================
    # Internal Methods
    # ========================================================================

    def _preflight(self, order: Order) -> None:
        if order.order_type in _UNPLACEABLE_TYPES:
            raise OrderValidationError(
                f"{order.order_type.value} orders cannot be placed"
            )

        if order.volume <= 0:
            raise OrderValidationError(f"Order volume must be positive, got {order.volume}")

        if order.order_type in _PRICED_TYPES and order.price is None:
            raise OrderValidationError(
                f"{order.order_type.value} orders require a price"
            )

        minimum = self.normalizer.minimum_tradable(order.pair.base)
        # Equal to the minimum passes
        if order.volume < minimum:
            metrics.record_preflight_rejection(order.pair.base)
            logger.warning(
                f"[KRK-ORD-002] Order below minimum size | pair={order.pair} | "
                f"volume={order.volume} | minimum={minimum}"
            )
            raise OrderBelowMinimumError(order.pair.base, order.volume, minimum)

    def _market_info(
        self,
        name: str,
        data: Mapping[str, Any],
        pair: Optional[CurrencyPair] = None
    ) -> MarketInfo:
        if pair is None:
            pair = CurrencyPair(
                self.normalizer.to_canonical_asset(data["base"]),
                self.normalizer.to_canonical_asset(data["quote"]),
            )

        fees = data.get("fees") or [[0, 0]]
        maker_fees = data.get("fees_maker") or fees

        ordermin = data.get("ordermin")
        if ordermin is not None:
            min_limit = self.gateway.to_volume(ordermin, "ordermin")
        else:
            try:
                min_limit = self.normalizer.minimum_tradable(pair.base)
            except UnknownSymbolError:
                min_limit = None

        costmin = data.get("costmin")
        return MarketInfo(
            pair=pair,
            exchange_name=name,
            price_decimals=int(data.get("pair_decimals", 0)),
            volume_decimals=int(data.get("lot_decimals", 0)),
            taker_fee_pct=self.gateway.to_percentage(fees[0][1], "fees"),
            maker_fee_pct=self.gateway.to_percentage(maker_fees[0][1], "fees_maker"),
            min_limit=min_limit,
            min_cost=self.gateway.to_price(costmin, "costmin") if costmin is not None else None,
        )

    def _book_entry(self, level: List[Any]) -> BookEntry:
        return BookEntry(
            price=self.gateway.to_price(level[0], "price"),
            volume=self.gateway.to_volume(level[1], "volume"),
            time=_utc(level[2]),
        )

    def _orders(self, entries: Mapping[str, Mapping[str, Any]]) -> List[Order]:
        return [self._order(txid, data) for txid, data in entries.items()]

    def _order(self, txid: str, data: Mapping[str, Any]) -> Order:
        descr = data.get("descr", {})
        price = self.gateway.to_price(descr.get("price"), "descr.price")
        if price == 0:
            price = self.gateway.to_price(data.get("price"), "price")

        return Order(
            pair=self.normalizer.from_internal_string(descr["pair"]),
            side=OrderSide(descr["type"]),
            order_type=OrderType(descr["ordertype"]),
            volume=self.gateway.to_volume(data.get("vol"), "vol"),
            price=price,
            txid=txid,
            status=OrderStatus(data.get("status", OrderStatus.OPEN.value)),
            executed_volume=self.gateway.to_volume(data.get("vol_exec"), "vol_exec"),
            cost=self.gateway.to_price(data.get("cost"), "cost"),
            fee=self.gateway.to_price(data.get("fee"), "fee"),
            description=descr.get("order"),
            opened_at=_utc(data.get("opentm")),
            closed_at=_utc(data.get("closetm")),
        )
