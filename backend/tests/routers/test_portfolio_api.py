# tests/routers/test_portfolio_api.py
"""
Integration tests for the portfolio valuation and history endpoints.
"""

from datetime import datetime, timezone
from decimal import Decimal

from tests.conftest import add_index_quotes


def _buy(client, ticker: str, quantity: str, unit_price: str, currency: str = "EUR", **extra):
    payload = {
        "ticker": ticker,
        "transaction_type": "BUY",
        "date": "2024-01-15T10:00:00Z",
        "quantity": quantity,
        "unit_price": unit_price,
        "currency": currency,
        **extra,
    }
    response = client.post("/transactions/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestGetPortfolio:

    def test_empty(self, client):
        data = client.get("/portfolio/").json()

        assert data["holdings"] == []
        assert Decimal(str(data["summary"]["total_value"])) == Decimal("0")
        assert data["summary"]["unpriced_tickers"] == []

    def test_holdings_with_live_fallback_and_unpriced(self, client, mock_provider):
        _buy(client, "IWDA", "10", "80", asset_type="ETF")
        _buy(client, "AAPL", "2", "150")
        _buy(client, "OBSCURE", "5", "10")
        mock_provider.add_quote("IWDA", "90", "EUR")

        data = client.get("/portfolio/").json()

        by_ticker = {h["ticker"]: h for h in data["holdings"]}
        assert by_ticker["IWDA"]["price_source"] == "LIVE"
        assert by_ticker["AAPL"]["price_source"] == "FALLBACK"
        assert by_ticker["OBSCURE"]["price_source"] == "UNPRICED"
        assert by_ticker["OBSCURE"]["current_value"] is None
        assert Decimal(str(by_ticker["IWDA"]["pnl"])) == Decimal("100")

        summary = data["summary"]
        assert Decimal(str(summary["total_value"])) == Decimal("1270")
        assert Decimal(str(summary["total_invested"])) == Decimal("1100")
        assert summary["unpriced_tickers"] == ["OBSCURE"]


class TestPortfolioHistory:

    def test_history_after_snapshots(self, client, snapshot_service, db, mock_provider):
        add_index_quotes(mock_provider, eur_usd="1.25", msci_world="125")
        _buy(client, "IWDA", "10", "100")
        snapshot_service.create_snapshot(db, Decimal("1000"), now=datetime(2024, 6, 3, 10, 7, tzinfo=timezone.utc))

        data = client.get("/portfolio/history").json()

        assert len(data) == 1
        point = data[0]
        assert point["date"] == "2024-06-03"
        assert point["time"] == "10:00"
        assert Decimal(str(point["invested"])) == Decimal("1000")
        assert Decimal(str(point["benchmarks"]["msci_world"])) == Decimal("1000")

    def test_empty_history(self, client):
        assert client.get("/portfolio/history").json() == []
