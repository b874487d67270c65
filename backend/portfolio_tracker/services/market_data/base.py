# backend/portfolio_tracker/services/market_data/base.py
"""
Abstract interface for market data providers.

The rest of the application only needs three capabilities from an upstream
source: a current quote, a daily close series, and a symbol search. Concrete
providers (Yahoo Finance, test doubles) implement this interface; the retry
policy is implemented once here.

Providers RAISE on failure (TickerNotFoundError, ProviderUnavailableError,
RateLimitError). Turning failures into fallbacks is the QuoteService's job.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from portfolio_tracker.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class Quote:
    """
    Latest price for a provider symbol.

    Attributes:
        symbol: Provider symbol the quote belongs to (e.g. "BTC-USD")
        price: Last traded price, in `currency`
        currency: ISO 4217 currency code of the price
    """

    symbol: str
    price: Decimal
    currency: str

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise ValueError(f"price must be positive, got {self.price}")


@dataclass(frozen=True)
class PricePoint:
    """One daily close."""

    date: date
    close: Decimal


@dataclass(frozen=True)
class SearchResult:
    """
    A symbol search hit.

    Attributes:
        symbol: Provider symbol
        name: Short or long display name
        quote_type: Provider instrument type (e.g. "EQUITY", "ETF", "CRYPTOCURRENCY")
    """

    symbol: str
    name: str
    quote_type: str


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class MarketDataProvider(ABC):
    """
    Abstract base class for market data providers.

    Retry Behavior:
        `_execute_with_retry` retries ProviderUnavailableError and
        RateLimitError with exponential backoff. Subclasses tune it through:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT / RETRY_MAX_WAIT: Backoff bounds in seconds
        - RETRY_MULTIPLIER: Exponential multiplier

    TickerNotFoundError is permanent and never retried.
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: float = 1
    RETRY_MAX_WAIT: float = 10
    RETRY_MULTIPLIER: float = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier used in logs and errors (e.g. "yahoo")."""
        pass

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """
        Fetch the latest price for a provider symbol.

        Raises:
            TickerNotFoundError: Symbol unknown or has no price
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    @abstractmethod
    def get_historical_prices(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> list[PricePoint]:
        """
        Fetch daily closes between start_date and end_date (both inclusive),
        ordered by date ascending. Days without a close are omitted.

        Raises:
            TickerNotFoundError: Symbol unknown
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    def search(self, query: str, limit: int) -> list[SearchResult]:
        """
        Search symbols matching a free-text query.

        Providers without a search capability return no results.
        """
        return []

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Retries ProviderUnavailableError and RateLimitError with exponential
        backoff; anything else propagates immediately. The last exception is
        re-raised once attempts are exhausted.
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()

    def is_available(self) -> bool:
        return True
