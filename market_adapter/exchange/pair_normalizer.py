# ============================================================================
# Kraken Market Adapter v0.1.0
# Pair Normalizer - Canonical <-> Kraken Symbol Translation
# ============================================================================
#
# Purpose: Reconciles Kraken asset naming with canonical pairs
#
#   - Kraken names bitcoin XBT while callers use BTC
#   - Asset codes carry X/Z class prefixes (XXBT, ZUSD) next to their
#     altnames (XBT, USD)
#   - Pair strings are concatenated without separator (XXBTZUSD, XBTUSD)
#
# The minimum order table is a static snapshot used as a pre-flight check
# only; the exchange remains the final arbiter.
#
# Error Codes:
#   - KRK-SYM-001: Unknown symbol
#   - KRK-SYM-002: Unparseable pair string
#
# ============================================================================

import threading
import logging
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Callable, FrozenSet, Mapping, Optional

from market_adapter.exchange.exceptions import (
    UnknownSymbolError,
    UnparseablePairError,
)
from market_adapter.types import CurrencyPair

logger = logging.getLogger(__name__)


# Canonical symbol -> Kraken altname
DEFAULT_ALIASES: Mapping[str, str] = MappingProxyType({
    "BTC": "XBT",
})

# https://support.kraken.com/hc/en-us/articles/205893708-What-is-the-minimum-order-size-
DEFAULT_MINIMUM_LIMITS: Mapping[str, Decimal] = MappingProxyType({
    "REP": Decimal("0.3"),
    "XBT": Decimal("0.002"),
    "BTC": Decimal("0.002"),
    "BCH": Decimal("0.002"),
    "DASH": Decimal("0.03"),
    "DOGE": Decimal("3000"),
    "EOS": Decimal("3"),
    "ETH": Decimal("0.02"),
    "ETC": Decimal("0.3"),
    "GNO": Decimal("0.03"),
    "ICN": Decimal("2"),
    "LTC": Decimal("0.1"),
    "MLN": Decimal("0.1"),
    "XMR": Decimal("0.1"),
    "XRP": Decimal("30"),
    "XLM": Decimal("300"),
    "ZEC": Decimal("0.03"),
    "USDT": Decimal("5"),
})

# Loader returning {asset code: altname}, e.g. {"XXBT": "XBT", "ZUSD": "USD"}
AssetLoader = Callable[[], Mapping[str, str]]


@dataclass(frozen=True)
class InternalSymbolPair:
    """A pair expressed in Kraken symbols."""
    base: str
    quote: str

    @property
    def joined(self) -> str:
        """Concatenated form accepted by the ``pair`` request parameter."""
        return f"{self.base}{self.quote}"

    def __str__(self) -> str:
        return self.joined


class PairNormalizer:
    """
    Translates canonical pairs to Kraken symbols and back.

    The set of exchange symbols is fetched once through ``asset_loader``
    and cached for the lifetime of the instance; ``refresh=True`` forces
    a reload.

    Thread Safety: first population guarded by a single-initialization
    lock; the cached tables are replaced atomically and read lock-free.

    Example Usage:
        normalizer = PairNormalizer(asset_loader=client_assets)
        internal = normalizer.to_internal(CurrencyPair("BTC", "USD"))
        internal.joined                                   # "XBTUSD"
        normalizer.from_internal_string("XXBTZUSD")       # BTC/USD
    """

    def __init__(
        self,
        asset_loader: AssetLoader,
        aliases: Optional[Mapping[str, str]] = None,
        minimum_limits: Optional[Mapping[str, Decimal]] = None
    ):
        self._asset_loader = asset_loader
        self._aliases = MappingProxyType(
            dict(DEFAULT_ALIASES if aliases is None else aliases)
        )
        self._reverse_aliases = MappingProxyType(
            {v: k for k, v in self._aliases.items()}
        )
        self._minimum_limits = MappingProxyType(
            dict(DEFAULT_MINIMUM_LIMITS if minimum_limits is None else minimum_limits)
        )
        self._asset_names: Optional[Mapping[str, str]] = None
        self._symbols: Optional[FrozenSet[str]] = None
        self._lock = threading.Lock()

    # ========================================================================
    # Symbol cache
    # ========================================================================

    def available_symbols(self, refresh: bool = False) -> FrozenSet[str]:
        """
        Every symbol the exchange knows: asset codes and their altnames.

        Args:
            refresh: Reload from the exchange even if already cached

        Raises:
            Whatever the asset loader raises (ServerError, ResponseError)
        """
        symbols = self._symbols
        if symbols is not None and not refresh:
            return symbols

        with self._lock:
            if self._symbols is not None and not refresh:
                return self._symbols

            assets = dict(self._asset_loader())
            names = {code.upper(): alt.upper() for code, alt in assets.items()}
            self._asset_names = MappingProxyType(names)
            self._symbols = frozenset(names) | frozenset(names.values())

            logger.info(
                f"[KRK-SYM] Symbol cache loaded | assets={len(names)} | "
                f"symbols={len(self._symbols)} | refresh={refresh}"
            )
            return self._symbols

    def _asset_name_table(self) -> Mapping[str, str]:
        self.available_symbols()
        return self._asset_names or {}

    # ========================================================================
    # Translation
    # ========================================================================

    def to_internal_symbol(self, symbol: str) -> str:
        """
        Kraken form of a single canonical symbol.

        Raises:
            UnknownSymbolError: If the symbol is not listed by the exchange
        """
        canonical = symbol.strip().upper()
        internal = self._aliases.get(canonical, canonical)
        if internal not in self.available_symbols():
            raise UnknownSymbolError(symbol)
        return internal

    def to_internal(self, pair: CurrencyPair) -> InternalSymbolPair:
        """
        Kraken form of a canonical pair.

        Raises:
            UnknownSymbolError: If either leg is not listed by the exchange
        """
        return InternalSymbolPair(
            base=self.to_internal_symbol(pair.base),
            quote=self.to_internal_symbol(pair.quote),
        )

    def to_canonical_asset(self, code: str) -> str:
        """
        Canonical symbol for a Kraken asset code or altname.

        XXBT -> XBT -> BTC, ZUSD -> USD. Codes without a table entry pass
        through unchanged.
        """
        upper = code.strip().upper()
        altname = self._asset_name_table().get(upper, upper)
        return self._reverse_aliases.get(altname, altname)

    def from_internal_string(self, pair_string: str) -> CurrencyPair:
        """
        Split a concatenated Kraken pair string into a canonical pair.

        Candidate bases are tried longest first; the remainder must also be
        a known symbol.

        Raises:
            UnparseablePairError: If no split yields two known symbols
        """
        text = pair_string.strip().upper()
        symbols = self.available_symbols()

        for split in range(len(text) - 1, 0, -1):
            base, quote = text[:split], text[split:]
            if base in symbols and quote in symbols:
                return CurrencyPair(
                    self.to_canonical_asset(base),
                    self.to_canonical_asset(quote),
                )

        logger.warning(f"[KRK-SYM-002] Unparseable pair | pair={pair_string}")
        raise UnparseablePairError(pair_string)

    # ========================================================================
    # Minimum order size
    # ========================================================================

    def minimum_tradable(self, symbol: str) -> Decimal:
        """
        Minimum order volume for ``symbol`` from the static table.

        Raises:
            UnknownSymbolError: If the symbol is not listed by the exchange
                or has no minimum on record
        """
        internal = self.to_internal_symbol(symbol)
        altname = self._asset_name_table().get(internal, internal)
        canonical = self._reverse_aliases.get(altname, altname)

        for key in (internal, altname, canonical):
            if key in self._minimum_limits:
                return self._minimum_limits[key]

        raise UnknownSymbolError(symbol, "no minimum order size on record")

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    @property
    def minimum_limits(self) -> Mapping[str, Decimal]:
        return self._minimum_limits
