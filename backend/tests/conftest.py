# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- Mock provider fixtures
- Service fixtures wired to the mock provider
- API client with dependency overrides
- Sample data factories
"""

import os

# Must be set before portfolio_tracker.config is imported anywhere
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import (
    get_benchmark_service,
    get_quote_service,
    get_snapshot_service,
    get_transaction_service,
    get_valuation_service,
)
from portfolio_tracker.main import app
from portfolio_tracker.models import (
    Base,
    Asset,
    AssetType,
    Transaction,
    TransactionType,
    TransactionBenchmark,
    BenchmarkPrice,
)
from portfolio_tracker.services.benchmark import BenchmarkService
from portfolio_tracker.services.exceptions import TickerNotFoundError
from portfolio_tracker.services.market_data.base import (
    MarketDataProvider,
    Quote,
    PricePoint,
    SearchResult,
)
from portfolio_tracker.services.quote_service import QuoteCache, QuoteService
from portfolio_tracker.services.snapshot_service import SnapshotService
from portfolio_tracker.services.transaction_service import TransactionService
from portfolio_tracker.services.valuation import ValuationService


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# MOCK MARKET DATA PROVIDER
# =============================================================================

class MockMarketDataProvider(MarketDataProvider):
    """
    Mock implementation of MarketDataProvider for testing.

    Quotes, histories and search hits are configured per provider symbol.
    Unknown symbols raise TickerNotFoundError, like the real provider.
    """

    def __init__(self):
        self._quotes: dict[str, Quote] = {}
        self._errors: dict[str, Exception] = {}
        self._history: dict[str, list[PricePoint]] = {}
        self._search_results: list[SearchResult] = []
        self.quote_calls: list[str] = []
        self.history_calls: list[tuple[str, date, date]] = []

    @property
    def name(self) -> str:
        return "mock"

    def add_quote(self, symbol: str, price: str | Decimal, currency: str = "USD") -> None:
        """Configure a successful quote for a symbol."""
        self._quotes[symbol] = Quote(symbol=symbol, price=Decimal(str(price)), currency=currency)

    def add_error(self, symbol: str, error: Exception) -> None:
        """Configure an error for a symbol (quotes and history)."""
        self._errors[symbol] = error

    def add_history(self, symbol: str, closes: dict[date, str | Decimal]) -> None:
        """Configure daily closes for a symbol."""
        self._history[symbol] = [
            PricePoint(date=d, close=Decimal(str(c))) for d, c in sorted(closes.items())
        ]

    def set_search_results(self, results: list[SearchResult]) -> None:
        self._search_results = results

    def get_quote(self, symbol: str) -> Quote:
        self.quote_calls.append(symbol)
        if symbol in self._errors:
            raise self._errors[symbol]
        if symbol in self._quotes:
            return self._quotes[symbol]
        raise TickerNotFoundError(symbol=symbol, provider=self.name)

    def get_historical_prices(self, symbol: str, start_date: date, end_date: date) -> list[PricePoint]:
        self.history_calls.append((symbol, start_date, end_date))
        if symbol in self._errors:
            raise self._errors[symbol]
        return [p for p in self._history.get(symbol, []) if start_date <= p.date <= end_date]

    def search(self, query: str, limit: int) -> list[SearchResult]:
        return self._search_results[:limit]


@pytest.fixture
def mock_provider() -> MockMarketDataProvider:
    """Create a fresh mock provider for each test."""
    return MockMarketDataProvider()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def quote_service(mock_provider: MockMarketDataProvider) -> QuoteService:
    return QuoteService(
        provider=mock_provider,
        cache=QuoteCache(ttl_seconds=60),
        batch_size=5,
        default_eur_usd_rate=Decimal("1.09"),
    )


@pytest.fixture
def valuation_service(quote_service: QuoteService) -> ValuationService:
    return ValuationService(quote_service)


@pytest.fixture
def benchmark_service(quote_service: QuoteService) -> BenchmarkService:
    return BenchmarkService(quote_service)


@pytest.fixture
def transaction_service(benchmark_service: BenchmarkService) -> TransactionService:
    return TransactionService(benchmark_service, default_usd_rate=Decimal("0.92"))


@pytest.fixture
def snapshot_service(
        benchmark_service: BenchmarkService,
        valuation_service: ValuationService,
) -> SnapshotService:
    return SnapshotService(benchmark_service, valuation_service)


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture
def client(
        db_engine,
        quote_service: QuoteService,
        valuation_service: ValuationService,
        benchmark_service: BenchmarkService,
        transaction_service: TransactionService,
        snapshot_service: SnapshotService,
) -> Iterator[TestClient]:
    """TestClient whose database and services use the test fixtures."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quote_service] = lambda: quote_service
    app.dependency_overrides[get_valuation_service] = lambda: valuation_service
    app.dependency_overrides[get_benchmark_service] = lambda: benchmark_service
    app.dependency_overrides[get_transaction_service] = lambda: transaction_service
    app.dependency_overrides[get_snapshot_service] = lambda: snapshot_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_asset(
        db: Session,
        ticker: str = "AAPL",
        name: str = "Apple Inc.",
        asset_type: AssetType = AssetType.STOCK,
) -> Asset:
    """Factory function for creating Asset entities in the database."""
    asset = Asset(ticker=ticker, name=name, asset_type=asset_type)
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def create_transaction(
        db: Session,
        asset: Asset,
        transaction_type: TransactionType = TransactionType.BUY,
        quantity: str = "10",
        unit_price: str = "100",
        total_eur: str | None = None,
        currency: str = "EUR",
        fees: str = "0",
        exchange_rate: str = "1",
        when: datetime | None = None,
) -> Transaction:
    """
    Factory function for creating Transaction entities directly, bypassing
    the service (no benchmark is recorded).
    """
    quantity_dec = Decimal(quantity)
    price_dec = Decimal(unit_price)
    transaction = Transaction(
        asset=asset,
        transaction_type=transaction_type,
        date=when or datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
        quantity=quantity_dec,
        unit_price=price_dec,
        currency=currency,
        fees=Decimal(fees),
        exchange_rate=Decimal(exchange_rate),
        total_eur=Decimal(total_eur) if total_eur is not None else quantity_dec * price_dec,
    )
    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    return transaction


def create_benchmark(
        db: Session,
        transaction: Transaction,
        prices: dict[str, str],
) -> TransactionBenchmark:
    """Attach a benchmark with the given EUR index prices to a transaction."""
    benchmark = TransactionBenchmark(
        transaction=transaction,
        prices=[BenchmarkPrice(index_key=key, price=Decimal(price)) for key, price in prices.items()],
    )
    db.add(benchmark)
    db.commit()
    db.refresh(benchmark)
    return benchmark


def add_index_quotes(
        provider: MockMarketDataProvider,
        eur_usd: str = "1.25",
        msci_world: str = "125",
        sp500: str = "5000",
        nasdaq: str = "15000",
        cac40: str = "7500",
        btc: str = "50000",
        eth: str = "2500",
) -> None:
    """Configure quotes for every tracked index and the EURUSD rate."""
    provider.add_quote("EURUSD=X", eur_usd, "USD")
    provider.add_quote("URTH", msci_world, "USD")
    provider.add_quote("^GSPC", sp500, "USD")
    provider.add_quote("^IXIC", nasdaq, "USD")
    provider.add_quote("^FCHI", cac40, "EUR")
    provider.add_quote("BTC-USD", btc, "USD")
    provider.add_quote("ETH-USD", eth, "USD")


def past(days: int) -> datetime:
    """UTC datetime `days` days ago."""
    return datetime.now(timezone.utc) - timedelta(days=days)
