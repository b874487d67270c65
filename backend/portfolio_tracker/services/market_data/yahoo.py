# backend/portfolio_tracker/services/market_data/yahoo.py
"""
Yahoo Finance market data provider implementation.

Implements the MarketDataProvider interface with the yfinance library:
- Latest quote from Ticker.info (regularMarketPrice + currency)
- Daily closes from Ticker.history
- Symbol search from yfinance.Search

Every upstream call passes through a circuit breaker and the retry wrapper
inherited from the base class. yfinance reports most failures as generic
exceptions, so they are classified by message into TickerNotFoundError
(permanent), RateLimitError and ProviderUnavailableError (retryable).

Limitations:
- Rate limits exist but are undocumented
- Quotes may be delayed 15-20 minutes for some markets
"""

import logging
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

import yfinance as yf

from portfolio_tracker.services.circuit_breaker import CircuitBreaker
from portfolio_tracker.services.constants import (
    CIRCUIT_BREAKER_FAILURE_THRESHOLD,
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
    SHARE_PRECISION,
)
from portfolio_tracker.services.exceptions import (
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from portfolio_tracker.services.market_data.base import (
    MarketDataProvider,
    Quote,
    PricePoint,
    SearchResult,
)

logger = logging.getLogger(__name__)


class YahooFinanceProvider(MarketDataProvider):
    """
    Yahoo Finance implementation of MarketDataProvider.

    Configuration:
        timeout: Request timeout in seconds for history and search calls
        circuit_breaker: Breaker shared by all calls of this provider

    Example:
        provider = YahooFinanceProvider(timeout=15)

        quote = provider.get_quote("BTC-USD")
        closes = provider.get_historical_prices("^GSPC", date(2024, 1, 1), date(2024, 3, 31))
    """

    def __init__(
            self,
            timeout: int = 10,
            circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        self._timeout = timeout
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            name="yahoo-finance",
            failure_threshold=CIRCUIT_BREAKER_FAILURE_THRESHOLD,
            recovery_timeout=CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
            excluded_exceptions=(TickerNotFoundError,),
        )
        logger.info(f"YahooFinanceProvider initialized (timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "yahoo"

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    # =========================================================================
    # QUOTES
    # =========================================================================

    def get_quote(self, symbol: str) -> Quote:
        return self._execute_with_retry(self._guarded, self._fetch_quote, symbol)

    def _fetch_quote(self, symbol: str) -> Quote:
        symbol = symbol.strip().upper()
        logger.debug(f"Fetching quote for {symbol}")

        info = yf.Ticker(symbol).info or {}
        price = self._to_decimal(
            info.get("regularMarketPrice") or info.get("currentPrice")
        )
        if price is None or price <= 0:
            raise TickerNotFoundError(symbol=symbol, provider=self.name)

        currency = (info.get("currency") or "USD").upper()
        logger.debug(f"Got {symbol}: {price} {currency}")
        return Quote(symbol=symbol, price=price, currency=currency)

    # =========================================================================
    # HISTORICAL PRICES
    # =========================================================================

    def get_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> list[PricePoint]:
        return self._execute_with_retry(
            self._guarded,
            self._fetch_historical_prices,
            symbol,
            start_date,
            end_date,
        )

    def _fetch_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> list[PricePoint]:
        symbol = symbol.strip().upper()
        logger.debug(f"Fetching daily closes for {symbol}: {start_date} to {end_date}")

        # Yahoo's end date is exclusive
        df = yf.Ticker(symbol).history(
            start=start_date.isoformat(),
            end=(end_date + timedelta(days=1)).isoformat(),
            interval="1d",
            auto_adjust=False,
            timeout=self._timeout,
        )

        if df is None or df.empty:
            logger.warning(f"No price data for {symbol} between {start_date} and {end_date}")
            return []

        points = []
        for idx, row in df.iterrows():
            close = self._to_decimal(row.get("Close"))
            if close is None:
                continue
            price_date = idx.date() if hasattr(idx, "date") else idx
            points.append(PricePoint(date=price_date, close=close))

        points.sort(key=lambda p: p.date)
        logger.debug(f"Fetched {len(points)} closes for {symbol}")
        return points

    # =========================================================================
    # SEARCH
    # =========================================================================

    def search(self, query: str, limit: int) -> list[SearchResult]:
        return self._execute_with_retry(self._guarded, self._search, query, limit)

    def _search(self, query: str, limit: int) -> list[SearchResult]:
        quotes = yf.Search(query, max_results=limit, timeout=self._timeout).quotes or []

        results = []
        for item in quotes:
            symbol = item.get("symbol")
            name = item.get("shortname") or item.get("longname")
            if not symbol or not name:
                continue
            results.append(SearchResult(
                symbol=symbol,
                name=name,
                quote_type=item.get("quoteType") or "EQUITY",
            ))
        return results[:limit]

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _guarded(self, func, *args: Any) -> Any:
        """Run one upstream attempt through the circuit breaker, classifying errors."""
        with self._circuit_breaker:
            try:
                return func(*args)
            except MarketDataError:
                raise
            except Exception as e:
                raise self._classify_error(e, args[0] if args else "") from e

    def _classify_error(self, error: Exception, symbol: str) -> MarketDataError:
        error_str = str(error).lower()
        if "not found" in error_str or "no data" in error_str or "delisted" in error_str:
            return TickerNotFoundError(symbol=str(symbol), provider=self.name)
        if "rate limit" in error_str or "too many requests" in error_str:
            return RateLimitError(provider=self.name)

        logger.error(f"Yahoo Finance error for {symbol}: {error}")
        return ProviderUnavailableError(provider=self.name, reason=str(error))

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value)).quantize(SHARE_PRECISION)
        except (TypeError, ValueError):
            return None
