# backend/portfolio_tracker/services/quote_service.py
"""
Quote Service - cached, failure-absorbing access to market prices.

This is the boundary between the application and the market data provider:
- Normalizes user tickers to provider symbols (SymbolMapping)
- Caches live quotes per provider symbol for a short TTL (QuoteCache)
- Fetches batches concurrently, a bounded window at a time
- NEVER raises for missing data: failures are logged and surface as
  None / empty results / the default FX rate, leaving fallback decisions
  to the caller

Currency convention:
    EURUSD=X is quoted as USD per 1 EUR (e.g. 1.09).
    The spot conversion rate is its inverse: EUR per 1 USD (e.g. 0.917).

Usage:
    service = QuoteService(provider=YahooFinanceProvider(), cache=QuoteCache(ttl_seconds=60))

    quote = service.get_quote("BTC", AssetType.CRYPTO)      # Quote("BTC-USD", ...) or None
    prices = service.get_quotes([("AAPL", None), ("ETH", None)])
    eur_per_usd = service.get_spot_conversion_rate()
"""

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

from portfolio_tracker.config import settings
from portfolio_tracker.models import AssetType
from portfolio_tracker.services.constants import (
    EUR,
    USD,
    EUR_USD_SYMBOL,
    SEARCH_MAX_RESULTS,
    SHARE_PRECISION,
)
from portfolio_tracker.services.market_data.base import (
    MarketDataProvider,
    Quote,
    PricePoint,
)
from portfolio_tracker.services.market_data.symbols import (
    SymbolMapping,
    DEFAULT_SYMBOL_MAPPING,
)

logger = logging.getLogger(__name__)

QuoteRequest = tuple[str, AssetType | str | None]


# =============================================================================
# QUOTE CACHE
# =============================================================================

class QuoteCache:
    """
    Thread-safe TTL cache of live quotes, one entry per provider symbol.

    Expired entries are dropped on read and never served again, even if the
    following fetch fails. Failed fetches are not cached.

    One instance is shared per process (see dependencies.get_quote_cache);
    tests construct their own or call clear().
    """

    def __init__(
            self,
            ttl_seconds: float = 60.0,
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Quote]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, symbol: str) -> Quote | None:
        with self._lock:
            entry = self._entries.get(symbol)
            if entry is None:
                return None

            stored_at, quote = entry
            if self._clock() - stored_at < self._ttl:
                logger.debug(f"Quote cache hit for {symbol}: {quote.price}")
                return quote

            del self._entries[symbol]
            logger.debug(f"Quote cache expired for {symbol}")
            return None

    def set(self, symbol: str, quote: Quote) -> None:
        with self._lock:
            self._entries[symbol] = (self._clock(), quote)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Quote cache cleared ({count} entries)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# =============================================================================
# QUOTE SERVICE
# =============================================================================

class QuoteService:
    """
    Price and FX access for valuation, benchmarks and snapshots.

    All public methods absorb provider failures. Callers decide what a
    missing price means (static fallback, unpriced holding, zero benchmark).
    """

    def __init__(
            self,
            provider: MarketDataProvider,
            cache: QuoteCache | None = None,
            symbol_mapping: SymbolMapping = DEFAULT_SYMBOL_MAPPING,
            batch_size: int | None = None,
            default_eur_usd_rate: Decimal | None = None,
    ) -> None:
        self._provider = provider
        self._cache = cache if cache is not None else QuoteCache(settings.quote_cache_ttl_seconds)
        self._symbols = symbol_mapping
        self._batch_size = batch_size or settings.quote_batch_size
        self._default_eur_usd_rate = default_eur_usd_rate or settings.default_eur_usd_rate

    @property
    def provider(self) -> MarketDataProvider:
        return self._provider

    @property
    def cache(self) -> QuoteCache:
        return self._cache

    def to_provider_symbol(self, ticker: str, asset_type: AssetType | str | None = None) -> str:
        return self._symbols.to_provider_symbol(ticker, asset_type)

    # =========================================================================
    # LIVE QUOTES
    # =========================================================================

    def get_quote(self, ticker: str, asset_type: AssetType | str | None = None) -> Quote | None:
        """
        Latest quote for a user ticker, or None if it cannot be obtained.

        Args:
            ticker: Ticker as entered by the user (e.g. "btc", "WBTC", "AAPL")
            asset_type: Type hint used for crypto pair synthesis
        """
        return self.get_symbol_quote(self.to_provider_symbol(ticker, asset_type))

    def get_symbol_quote(self, symbol: str) -> Quote | None:
        """Latest quote for an already-normalized provider symbol."""
        cached = self._cache.get(symbol)
        if cached is not None:
            return cached

        try:
            logger.debug(f"Fetching quote for {symbol} from {self._provider.name}")
            quote = self._provider.get_quote(symbol)
        except Exception as e:
            logger.warning(f"Quote unavailable for {symbol}: {e}")
            return None

        self._cache.set(symbol, quote)
        return quote

    def get_quote_details(self, requests: Iterable[QuoteRequest]) -> dict[str, Quote]:
        """
        Fetch quotes for many tickers, `batch_size` at a time.

        Fetches within a batch run concurrently and are isolated from each
        other: a failing ticker is simply absent from the result.

        Returns:
            Quotes keyed by upper-cased input ticker
        """
        unique: dict[str, AssetType | str | None] = {}
        for ticker, asset_type in requests:
            unique.setdefault(ticker.strip().upper(), asset_type)

        return self._fetch_batched(
            [(ticker, self.to_provider_symbol(ticker, asset_type)) for ticker, asset_type in unique.items()]
        )

    def get_symbol_quotes(self, symbols: Iterable[str]) -> dict[str, Quote]:
        """Batch variant of get_symbol_quote, keyed by provider symbol."""
        return self._fetch_batched([(symbol, symbol) for symbol in dict.fromkeys(symbols)])

    def get_quotes(self, requests: Iterable[QuoteRequest]) -> dict[str, Decimal]:
        """Batch variant of get_quote returning prices only (in each quote's currency)."""
        return {ticker: quote.price for ticker, quote in self.get_quote_details(requests).items()}

    # =========================================================================
    # HISTORICAL PRICES
    # =========================================================================

    def get_historical_prices(
            self,
            ticker: str,
            asset_type: AssetType | str | None,
            start_date: date,
            end_date: date | None = None,
    ) -> list[PricePoint]:
        """Daily closes for a user ticker; empty list on failure."""
        return self.get_symbol_history(
            self.to_provider_symbol(ticker, asset_type), start_date, end_date
        )

    def get_symbol_history(
            self,
            symbol: str,
            start_date: date,
            end_date: date | None = None,
    ) -> list[PricePoint]:
        """Daily closes for a provider symbol, ascending; empty list on failure."""
        end_date = end_date or date.today()
        if start_date > end_date:
            return []

        try:
            return self._provider.get_historical_prices(symbol, start_date, end_date)
        except Exception as e:
            logger.warning(f"Price history unavailable for {symbol} ({start_date} to {end_date}): {e}")
            return []

    # =========================================================================
    # FX
    # =========================================================================

    def get_eur_usd_rate(self) -> Decimal:
        """USD per 1 EUR; falls back to the configured default rate."""
        quote = self.get_symbol_quote(EUR_USD_SYMBOL)
        if quote is None:
            logger.warning(
                f"EUR/USD rate unavailable, using default {self._default_eur_usd_rate}"
            )
            return self._default_eur_usd_rate
        return quote.price

    def get_spot_conversion_rate(self) -> Decimal:
        """EUR per 1 USD, the multiplier converting USD amounts to EUR."""
        return (Decimal("1") / self.get_eur_usd_rate()).quantize(SHARE_PRECISION)

    def to_eur(
            self,
            amount: Decimal,
            currency: str,
            eur_usd_rate: Decimal | None = None,
    ) -> Decimal | None:
        """
        Convert an amount to EUR at the current spot rate.

        Only EUR and USD are converted automatically; other currencies
        return None.

        Args:
            amount: Amount in `currency`
            currency: ISO code of the amount
            eur_usd_rate: USD per EUR to use (fetched when omitted)
        """
        currency = currency.upper()
        if currency == EUR:
            return amount
        if currency == USD:
            rate = eur_usd_rate if eur_usd_rate is not None else self.get_eur_usd_rate()
            return amount / rate

        logger.warning(f"No automatic conversion from {currency} to {EUR}")
        return None

    def _fetch_batched(self, items: list[tuple[str, str]]) -> dict[str, Quote]:
        """
        Fetch (result_key, provider_symbol) pairs `batch_size` at a time.

        Fetches within a batch run concurrently and are isolated from each
        other: a failing symbol is simply absent from the result.
        """
        results: dict[str, Quote] = {}

        for start in range(0, len(items), self._batch_size):
            batch = items[start:start + self._batch_size]
            with ThreadPoolExecutor(max_workers=len(batch)) as pool:
                futures = {
                    key: pool.submit(self.get_symbol_quote, symbol)
                    for key, symbol in batch
                }
                for key, future in futures.items():
                    try:
                        quote = future.result()
                    except Exception as e:
                        logger.error(f"Unexpected error fetching quote for {key}: {e}")
                        continue
                    if quote is not None:
                        results[key] = quote

        logger.debug(f"Fetched {len(results)}/{len(items)} quotes")
        return results

    # =========================================================================
    # SEARCH
    # =========================================================================

    def search_tickers(self, query: str) -> list[dict]:
        """
        Search provider symbols for a free-text query.

        Returns:
            Up to 10 results as {symbol, name, type} with type one of
            CRYPTO, ETF or STOCK
        """
        query = query.strip()
        if not query:
            return []

        try:
            hits = self._provider.search(query, SEARCH_MAX_RESULTS)
        except Exception as e:
            logger.warning(f"Ticker search failed for '{query}': {e}")
            return []

        return [
            {
                "symbol": hit.symbol,
                "name": hit.name,
                "type": _asset_type_for_quote_type(hit.quote_type).value,
            }
            for hit in hits[:SEARCH_MAX_RESULTS]
        ]


def _asset_type_for_quote_type(quote_type: str) -> AssetType:
    if quote_type == "CRYPTOCURRENCY":
        return AssetType.CRYPTO
    if quote_type == "ETF":
        return AssetType.ETF
    return AssetType.STOCK
