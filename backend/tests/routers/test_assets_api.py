# tests/routers/test_assets_api.py
"""
Integration tests for asset listing and ticker search.
"""

from portfolio_tracker.services.market_data import SearchResult
from tests.conftest import create_asset


class TestListAssets:

    def test_sorted_by_ticker(self, client, db):
        create_asset(db, "MSFT", "Microsoft")
        create_asset(db, "AAPL", "Apple Inc.")

        data = client.get("/assets/").json()

        assert [a["ticker"] for a in data] == ["AAPL", "MSFT"]
        assert data[0]["asset_type"] == "STOCK"


class TestSearch:

    def test_search(self, client, mock_provider):
        mock_provider.set_search_results([
            SearchResult("BTC-USD", "Bitcoin USD", "CRYPTOCURRENCY"),
            SearchResult("IWDA.AS", "iShares Core MSCI World", "ETF"),
        ])

        data = client.get("/assets/search", params={"q": "world"}).json()

        assert data == [
            {"symbol": "BTC-USD", "name": "Bitcoin USD", "type": "CRYPTO"},
            {"symbol": "IWDA.AS", "name": "iShares Core MSCI World", "type": "ETF"},
        ]

    def test_empty_query(self, client):
        assert client.get("/assets/search").json() == []
