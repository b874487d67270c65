# backend/portfolio_tracker/services/market_data/indices.py
"""
Registry of reference market indices.

Tracked indices take part in the benchmark ledger (a price is recorded for
each BUY and theoretical units accumulate). Untracked ones are only offered
as comparison series for charts.

Adding an index is a registry change: benchmark prices and snapshot values are
stored per index key, so no schema change is needed.
"""

from dataclasses import dataclass

from portfolio_tracker.services.constants import EUR, USD
from portfolio_tracker.services.exceptions import UnknownIndexError


@dataclass(frozen=True)
class MarketIndex:
    """
    A reference index.

    Attributes:
        key: Stable identifier used in storage and URLs (e.g. "msci_world")
        symbol: Provider symbol (e.g. "URTH")
        name: Display name
        currency: Currency the provider quotes the index in
        color: Chart colour
        tracked: Whether the benchmark ledger records this index
    """

    key: str
    symbol: str
    name: str
    currency: str
    color: str
    tracked: bool = True


@dataclass(frozen=True)
class IndexRegistry:
    indices: tuple[MarketIndex, ...]

    def get(self, key: str) -> MarketIndex:
        for index in self.indices:
            if index.key == key:
                return index
        raise UnknownIndexError(key, self.keys())

    def keys(self) -> list[str]:
        return [index.key for index in self.indices]

    @property
    def tracked(self) -> tuple[MarketIndex, ...]:
        return tuple(index for index in self.indices if index.tracked)


DEFAULT_INDEX_REGISTRY = IndexRegistry(indices=(
    # URTH is the iShares MSCI World ETF, used as the MSCI World proxy
    MarketIndex("msci_world", "URTH", "MSCI World", USD, "#f59e0b"),
    MarketIndex("sp500", "^GSPC", "S&P 500", USD, "#ef4444"),
    MarketIndex("nasdaq", "^IXIC", "NASDAQ Composite", USD, "#8b5cf6"),
    MarketIndex("cac40", "^FCHI", "CAC 40", EUR, "#3b82f6"),
    MarketIndex("btc", "BTC-USD", "Bitcoin", USD, "#fbbf24"),
    MarketIndex("eth", "ETH-USD", "Ethereum", USD, "#6366f1"),
    MarketIndex("dax", "^GDAXI", "DAX", EUR, "#ec4899", tracked=False),
    MarketIndex("ftse100", "^FTSE", "FTSE 100", "GBP", "#14b8a6", tracked=False),
    MarketIndex("nikkei", "^N225", "Nikkei 225", "JPY", "#f97316", tracked=False),
))
