# tests/services/test_calculators.py
"""
Unit tests for the ledger and P&L calculators.

Tests are pure: transactions are built in memory, no database.
"""

from decimal import Decimal

import pytest

from portfolio_tracker.models import Asset, AssetType, Transaction, TransactionType
from portfolio_tracker.services.valuation.calculators import (
    LedgerAggregator,
    compute_total_eur,
    pnl_percent,
)
from portfolio_tracker.services.valuation.types import HoldingPosition


def _asset(ticker: str = "BTC") -> Asset:
    return Asset(ticker=ticker, name=ticker, asset_type=AssetType.CRYPTO)


def _txn(transaction_type: TransactionType, quantity: str, total_eur: str) -> Transaction:
    return Transaction(
        transaction_type=transaction_type,
        quantity=Decimal(quantity),
        unit_price=Decimal("1"),
        total_eur=Decimal(total_eur),
    )


# =============================================================================
# TOTAL EUR
# =============================================================================

class TestComputeTotalEur:

    def test_usd_with_fees(self):
        total = compute_total_eur(
            Decimal("0.1"), Decimal("42000"), Decimal("10"), "USD", Decimal("0.92")
        )

        assert total == Decimal("3873.2")

    def test_eur_ignores_rate(self):
        total = compute_total_eur(
            Decimal("2"), Decimal("100"), Decimal("1.5"), "EUR", Decimal("0.5")
        )

        assert total == Decimal("201.5")


# =============================================================================
# LEDGER AGGREGATION
# =============================================================================

class TestLedgerAggregator:

    def test_buys_only(self):
        position = LedgerAggregator().aggregate(_asset(), [
            _txn(TransactionType.BUY, "1", "40000"),
            _txn(TransactionType.BUY, "1", "60000"),
        ])

        assert position.quantity == Decimal("2")
        assert position.pru == Decimal("50000")
        assert position.invested == Decimal("100000")

    def test_sell_and_withdraw_reduce_quantity_not_pru(self):
        position = LedgerAggregator().aggregate(_asset(), [
            _txn(TransactionType.BUY, "2", "100000"),
            _txn(TransactionType.SELL, "0.5", "30000"),
            _txn(TransactionType.WITHDRAW, "0.5", "0"),
        ])

        assert position.quantity == Decimal("1")
        assert position.total_sell_quantity == Decimal("1")
        assert position.pru == Decimal("50000")
        assert position.invested == Decimal("50000")

    def test_no_buys_gives_zero_pru(self):
        position = LedgerAggregator().aggregate(_asset(), [
            _txn(TransactionType.SELL, "1", "100"),
        ])

        assert position.pru == Decimal("0")
        assert position.quantity == Decimal("-1")

    def test_holdings_excludes_closed_and_negative(self):
        open_asset = _asset("BTC")
        open_asset.transactions = [_txn(TransactionType.BUY, "1", "100")]
        closed_asset = _asset("ETH")
        closed_asset.transactions = [
            _txn(TransactionType.BUY, "1", "100"),
            _txn(TransactionType.SELL, "1", "120"),
        ]
        negative_asset = _asset("SOL")
        negative_asset.transactions = [_txn(TransactionType.WITHDRAW, "3", "0")]

        positions = LedgerAggregator().holdings([open_asset, closed_asset, negative_asset])

        assert [p.asset.ticker for p in positions] == ["BTC"]

    def test_pru_is_quantized(self):
        position = HoldingPosition(
            asset=_asset(),
            quantity=Decimal("3"),
            total_buy_quantity=Decimal("3"),
            total_buy_cost_eur=Decimal("100"),
            total_sell_quantity=Decimal("0"),
        )

        assert position.pru == Decimal("33.33333333")
        assert position.invested == Decimal("100")

    def test_invested_uses_unrounded_cost_basis(self):
        position = LedgerAggregator().aggregate(_asset("SHIB"), [
            _txn(TransactionType.BUY, "100000000", "1234.567"),
        ])

        assert position.pru == Decimal("0.00001235")
        assert position.invested == Decimal("1234.567")

    @pytest.mark.parametrize("order", [
        ("BUY", "SELL", "BUY", "WITHDRAW"),
        ("SELL", "WITHDRAW", "BUY", "BUY"),
        ("BUY", "BUY", "WITHDRAW", "SELL"),
        ("WITHDRAW", "BUY", "SELL", "BUY"),
    ])
    def test_pru_independent_of_sell_and_withdraw_order(self, order):
        buys = iter([("1", "30000"), ("3", "150000")])
        transactions = []
        for kind in order:
            if kind == "BUY":
                quantity, total = next(buys)
                transactions.append(_txn(TransactionType.BUY, quantity, total))
            else:
                transactions.append(_txn(TransactionType[kind], "0.5", "1000"))

        position = LedgerAggregator().aggregate(_asset(), transactions)

        assert position.pru == Decimal("45000")
        assert position.quantity == Decimal("3")


# =============================================================================
# P&L
# =============================================================================

class TestPnlPercent:

    @pytest.mark.parametrize("pnl,invested,expected", [
        ("50", "100", "50"),
        ("-25", "100", "-25"),
        ("10", "0", "0"),
    ])
    def test_pnl_percent(self, pnl, invested, expected):
        assert pnl_percent(Decimal(pnl), Decimal(invested)) == Decimal(expected)
