# backend/portfolio_tracker/services/market_data/__init__.py
"""
Market data access: provider interface, Yahoo Finance implementation,
symbol normalization rules and the reference index registry.
"""

from portfolio_tracker.services.market_data.base import (
    MarketDataProvider,
    Quote,
    PricePoint,
    SearchResult,
)
from portfolio_tracker.services.market_data.indices import (
    MarketIndex,
    IndexRegistry,
    DEFAULT_INDEX_REGISTRY,
)
from portfolio_tracker.services.market_data.symbols import (
    SymbolMapping,
    DEFAULT_SYMBOL_MAPPING,
)
from portfolio_tracker.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    "MarketDataProvider",
    "Quote",
    "PricePoint",
    "SearchResult",
    "MarketIndex",
    "IndexRegistry",
    "DEFAULT_INDEX_REGISTRY",
    "SymbolMapping",
    "DEFAULT_SYMBOL_MAPPING",
    "YahooFinanceProvider",
]
