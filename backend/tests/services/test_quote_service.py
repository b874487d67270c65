# tests/services/test_quote_service.py
"""
Tests for QuoteService and QuoteCache.

Covers:
- TTL expiry and clearing of the cache
- Failure absorption (missing quotes are None, never exceptions)
- Batched fetching keyed by input ticker
- EURUSD fallback and EUR conversion
- Search result mapping
"""

from datetime import date
from decimal import Decimal

import pytest

from portfolio_tracker.models import AssetType
from portfolio_tracker.services.exceptions import ProviderUnavailableError
from portfolio_tracker.services.market_data import Quote, SearchResult
from portfolio_tracker.services.quote_service import QuoteCache, QuoteService


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


# =============================================================================
# CACHE
# =============================================================================

class TestQuoteCache:

    def test_returns_fresh_entry(self):
        clock = FakeClock()
        cache = QuoteCache(ttl_seconds=60, clock=clock)
        quote = Quote("AAPL", Decimal("190"), "USD")

        cache.set("AAPL", quote)
        clock.now += 59

        assert cache.get("AAPL") == quote

    def test_expired_entry_is_dropped(self):
        clock = FakeClock()
        cache = QuoteCache(ttl_seconds=60, clock=clock)
        cache.set("AAPL", Quote("AAPL", Decimal("190"), "USD"))

        clock.now += 60

        assert cache.get("AAPL") is None
        assert len(cache) == 0

    def test_clear(self):
        cache = QuoteCache()
        cache.set("AAPL", Quote("AAPL", Decimal("190"), "USD"))

        cache.clear()

        assert len(cache) == 0


# =============================================================================
# LIVE QUOTES
# =============================================================================

class TestGetQuote:

    def test_normalizes_ticker(self, quote_service, mock_provider):
        mock_provider.add_quote("BTC-USD", "50000")

        quote = quote_service.get_quote("btc")

        assert quote.symbol == "BTC-USD"
        assert mock_provider.quote_calls == ["BTC-USD"]

    def test_second_call_served_from_cache(self, quote_service, mock_provider):
        mock_provider.add_quote("AAPL", "190")

        quote_service.get_quote("AAPL")
        quote_service.get_quote("AAPL")

        assert mock_provider.quote_calls == ["AAPL"]

    def test_unknown_ticker_returns_none(self, quote_service):
        assert quote_service.get_quote("NOPE") is None

    def test_provider_error_returns_none_and_is_not_cached(self, quote_service, mock_provider):
        mock_provider.add_error("AAPL", ProviderUnavailableError("mock", "down"))

        assert quote_service.get_quote("AAPL") is None
        assert len(quote_service.cache) == 0

    def test_cleared_cache_refetches(self, quote_service, mock_provider):
        mock_provider.add_quote("AAPL", "190")
        quote_service.get_quote("AAPL")

        quote_service.cache.clear()
        quote_service.get_quote("AAPL")

        assert mock_provider.quote_calls == ["AAPL", "AAPL"]


class TestBatchQuotes:

    def test_keyed_by_input_ticker(self, quote_service, mock_provider):
        mock_provider.add_quote("BTC-USD", "50000")
        mock_provider.add_quote("AAPL", "190")

        quotes = quote_service.get_quote_details([("btc", None), ("AAPL", AssetType.STOCK)])

        assert set(quotes) == {"BTC", "AAPL"}
        assert quotes["BTC"].price == Decimal("50000")

    def test_failures_are_isolated(self, quote_service, mock_provider):
        mock_provider.add_quote("AAPL", "190")
        mock_provider.add_error("MSFT", ProviderUnavailableError("mock", "down"))

        prices = quote_service.get_quotes([("AAPL", None), ("MSFT", None), ("NOPE", None)])

        assert prices == {"AAPL": Decimal("190")}

    def test_more_tickers_than_batch_size(self, mock_provider):
        service = QuoteService(mock_provider, QuoteCache(), batch_size=2)
        tickers = ["A", "B", "C", "D", "E"]
        for ticker in tickers:
            mock_provider.add_quote(ticker, "10")

        prices = service.get_quotes((t, None) for t in tickers)

        assert set(prices) == set(tickers)

    def test_duplicates_fetched_once(self, quote_service, mock_provider):
        mock_provider.add_quote("AAPL", "190")

        quote_service.get_quote_details([("AAPL", None), ("aapl", None)])

        assert mock_provider.quote_calls == ["AAPL"]

    def test_symbol_quotes(self, quote_service, mock_provider):
        mock_provider.add_quote("^GSPC", "5000")

        quotes = quote_service.get_symbol_quotes(["^GSPC", "URTH"])

        assert list(quotes) == ["^GSPC"]


# =============================================================================
# HISTORY
# =============================================================================

class TestHistory:

    def test_returns_closes_in_range(self, quote_service, mock_provider):
        mock_provider.add_history("BTC-USD", {
            date(2024, 1, 1): "42000",
            date(2024, 1, 2): "43000",
            date(2024, 1, 10): "45000",
        })

        points = quote_service.get_historical_prices("BTC", AssetType.CRYPTO, date(2024, 1, 1), date(2024, 1, 5))

        assert [p.close for p in points] == [Decimal("42000"), Decimal("43000")]

    def test_inverted_range_is_empty(self, quote_service, mock_provider):
        assert quote_service.get_symbol_history("URTH", date(2024, 2, 1), date(2024, 1, 1)) == []
        assert mock_provider.history_calls == []

    def test_error_is_empty(self, quote_service, mock_provider):
        mock_provider.add_error("URTH", ProviderUnavailableError("mock", "down"))

        assert quote_service.get_symbol_history("URTH", date(2024, 1, 1), date(2024, 1, 5)) == []


# =============================================================================
# FX
# =============================================================================

class TestFx:

    def test_live_eur_usd_rate(self, quote_service, mock_provider):
        mock_provider.add_quote("EURUSD=X", "1.25")

        assert quote_service.get_eur_usd_rate() == Decimal("1.25")
        assert quote_service.get_spot_conversion_rate() == Decimal("0.8")

    def test_default_rate_when_unavailable(self, quote_service):
        assert quote_service.get_eur_usd_rate() == Decimal("1.09")

    def test_to_eur(self, quote_service):
        assert quote_service.to_eur(Decimal("100"), "EUR") == Decimal("100")
        assert quote_service.to_eur(Decimal("125"), "usd", Decimal("1.25")) == Decimal("100")
        assert quote_service.to_eur(Decimal("100"), "GBP", Decimal("1.25")) is None


# =============================================================================
# SEARCH
# =============================================================================

class TestSearch:

    def test_empty_query(self, quote_service):
        assert quote_service.search_tickers("  ") == []

    @pytest.mark.parametrize("quote_type,expected", [
        ("CRYPTOCURRENCY", "CRYPTO"),
        ("ETF", "ETF"),
        ("EQUITY", "STOCK"),
        ("MUTUALFUND", "STOCK"),
    ])
    def test_type_mapping(self, quote_service, mock_provider, quote_type, expected):
        mock_provider.set_search_results([SearchResult("X", "Example", quote_type)])

        assert quote_service.search_tickers("x") == [{"symbol": "X", "name": "Example", "type": expected}]

    def test_capped_at_ten(self, quote_service, mock_provider):
        mock_provider.set_search_results([SearchResult(f"S{i}", f"Name {i}", "EQUITY") for i in range(15)])

        assert len(quote_service.search_tickers("s")) == 10
