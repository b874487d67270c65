# backend/portfolio_tracker/dependencies.py
"""
Dependency injection module for FastAPI services.

Services are process-wide singletons, created lazily on first use. Sharing
them matters: the quote cache and the provider's circuit breaker only work
if every request goes through the same instances.

Tests replace them with app.dependency_overrides, or call
clear_service_caches() to rebuild them.

Usage in routers:
    from portfolio_tracker.dependencies import get_valuation_service

    @router.get("/")
    def get_portfolio(service: ValuationService = Depends(get_valuation_service)):
        ...
"""

import logging
from functools import lru_cache

from portfolio_tracker.config import settings
from portfolio_tracker.services.benchmark import BenchmarkService
from portfolio_tracker.services.market_data import (
    MarketDataProvider,
    YahooFinanceProvider,
    DEFAULT_INDEX_REGISTRY,
    DEFAULT_SYMBOL_MAPPING,
)
from portfolio_tracker.services.quote_service import QuoteCache, QuoteService
from portfolio_tracker.services.snapshot_service import SnapshotService
from portfolio_tracker.services.transaction_service import TransactionService
from portfolio_tracker.services.valuation import ValuationService, DEFAULT_FALLBACK_PRICES_EUR

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_market_data_provider, get_quote_cache (no deps)
# 2. get_quote_service (provider, cache)
# 3. get_valuation_service, get_benchmark_service (quote service)
# 4. get_transaction_service (benchmark), get_snapshot_service (benchmark, valuation)


@lru_cache(maxsize=1)
def get_market_data_provider() -> MarketDataProvider:
    """Shared provider, so one circuit breaker guards every Yahoo call."""
    logger.debug("Initializing singleton YahooFinanceProvider")
    return YahooFinanceProvider(timeout=settings.market_data_timeout_seconds)


@lru_cache(maxsize=1)
def get_quote_cache() -> QuoteCache:
    logger.debug(f"Initializing singleton QuoteCache (ttl={settings.quote_cache_ttl_seconds}s)")
    return QuoteCache(ttl_seconds=settings.quote_cache_ttl_seconds)


@lru_cache(maxsize=1)
def get_quote_service() -> QuoteService:
    logger.debug("Initializing singleton QuoteService")
    return QuoteService(
        provider=get_market_data_provider(),
        cache=get_quote_cache(),
        symbol_mapping=DEFAULT_SYMBOL_MAPPING,
        batch_size=settings.quote_batch_size,
        default_eur_usd_rate=settings.default_eur_usd_rate,
    )


@lru_cache(maxsize=1)
def get_valuation_service() -> ValuationService:
    logger.debug("Initializing singleton ValuationService")
    return ValuationService(
        quote_service=get_quote_service(),
        fallback_prices=DEFAULT_FALLBACK_PRICES_EUR,
    )


@lru_cache(maxsize=1)
def get_benchmark_service() -> BenchmarkService:
    logger.debug("Initializing singleton BenchmarkService")
    return BenchmarkService(
        quote_service=get_quote_service(),
        registry=DEFAULT_INDEX_REGISTRY,
    )


@lru_cache(maxsize=1)
def get_transaction_service() -> TransactionService:
    logger.debug("Initializing singleton TransactionService")
    return TransactionService(
        benchmark_service=get_benchmark_service(),
        default_usd_rate=settings.default_usd_exchange_rate,
    )


@lru_cache(maxsize=1)
def get_snapshot_service() -> SnapshotService:
    logger.debug("Initializing singleton SnapshotService")
    return SnapshotService(
        benchmark_service=get_benchmark_service(),
        valuation_service=get_valuation_service(),
    )


def clear_service_caches() -> None:
    """Drop every singleton so the next call builds fresh instances."""
    for getter in (
            get_market_data_provider,
            get_quote_cache,
            get_quote_service,
            get_valuation_service,
            get_benchmark_service,
            get_transaction_service,
            get_snapshot_service,
    ):
        getter.cache_clear()
