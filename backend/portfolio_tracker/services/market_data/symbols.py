# backend/portfolio_tracker/services/market_data/symbols.py
"""
Ticker → provider symbol normalization.

Users enter bare tickers ("BTC", "WBTC", "AAPL"); the provider wants its own
canonical symbols ("BTC-USD", "AAPL"). The mapping rules are data, held in a
SymbolMapping that can be swapped or extended without touching the lookup code.

Resolution order:
    1. Already-qualified crypto pairs ("SOL-USD") pass through
    2. Proxy table: wrapped/staked tokens and stablecoins map to a liquid
       reference of materially equivalent value (WBTC → BTC-USD)
    3. Known crypto tickers map to their quote pair (ETH → ETH-USD)
    4. Any other CRYPTO-typed asset gets a synthesized "<TICKER>-USD" pair
    5. Everything else (stocks, ETFs) passes through upper-cased
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from portfolio_tracker.models import AssetType

logger = logging.getLogger(__name__)


# Tokens without their own provider data, priced through an equivalent asset
PROXY_SYMBOLS: Mapping[str, str] = MappingProxyType({
    # Staked ETH variants (~1 ETH)
    "BETH": "ETH-USD",
    "BETH-USD": "ETH-USD",
    "STETH": "ETH-USD",
    "WSTETH": "ETH-USD",
    "CBETH": "ETH-USD",
    "RETH": "ETH-USD",
    # Wrapped BTC variants (~1 BTC)
    "WBTC": "BTC-USD",
    "TBTC": "BTC-USD",
    "HBTC": "BTC-USD",
    # Stablecoins (~1 USD)
    "USDT": "USDC-USD",
    "USDC": "USDC-USD",
    "BUSD": "USDC-USD",
    "TUSD": "USDC-USD",
    "DAI": "DAI-USD",
})

KNOWN_CRYPTO_TICKERS: tuple[str, ...] = (
    "BTC", "ETH", "SOL", "ADA", "DOT", "AVAX", "MATIC", "LINK", "UNI", "XRP",
    "DOGE", "SHIB", "LTC", "BCH", "ATOM", "FTM", "NEAR", "ALGO", "XLM", "VET",
)


@dataclass(frozen=True)
class SymbolMapping:
    """
    Rules for turning a ticker and asset type into a provider symbol.

    Attributes:
        proxies: Ticker → reference symbol for tokens priced by proxy
        crypto_tickers: Tickers known to be crypto even without a CRYPTO type hint
        quote_suffix: Suffix forming a crypto quote pair (e.g. "-USD")
    """

    proxies: Mapping[str, str] = field(default_factory=lambda: PROXY_SYMBOLS)
    crypto_tickers: frozenset[str] = field(default_factory=lambda: frozenset(KNOWN_CRYPTO_TICKERS))
    quote_suffix: str = "-USD"

    def to_provider_symbol(self, ticker: str, asset_type: AssetType | str | None = None) -> str:
        symbol = ticker.strip().upper()

        if symbol.endswith(self.quote_suffix):
            return symbol

        proxy = self.proxies.get(symbol)
        if proxy is not None:
            logger.debug(f"Using proxy symbol for {symbol}: {proxy}")
            return proxy

        if symbol in self.crypto_tickers:
            return f"{symbol}{self.quote_suffix}"

        if asset_type == AssetType.CRYPTO:
            return f"{symbol}{self.quote_suffix}"

        return symbol

    def with_proxies(self, extra: Mapping[str, str]) -> "SymbolMapping":
        """Return a copy with additional (or overriding) proxy entries."""
        merged = {**self.proxies, **{k.upper(): v.upper() for k, v in extra.items()}}
        return SymbolMapping(
            proxies=MappingProxyType(merged),
            crypto_tickers=self.crypto_tickers,
            quote_suffix=self.quote_suffix,
        )


DEFAULT_SYMBOL_MAPPING = SymbolMapping()
