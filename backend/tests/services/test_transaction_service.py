# tests/services/test_transaction_service.py
"""
Tests for TransactionService: asset lifecycle, exchange rates, total_eur,
benchmark recording and validation-before-mutation.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from portfolio_tracker.models import Asset, AssetType, Transaction, TransactionBenchmark, TransactionType
from portfolio_tracker.schemas.transactions import TransactionCreate, TransactionUpdate
from portfolio_tracker.services.exceptions import TransactionNotFoundError, ValidationError
from tests.conftest import add_index_quotes


def _create(**overrides) -> TransactionCreate:
    data = {
        "ticker": "BTC",
        "name": "Bitcoin",
        "asset_type": AssetType.CRYPTO,
        "transaction_type": TransactionType.BUY,
        "date": datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
        "quantity": Decimal("0.1"),
        "unit_price": Decimal("42000"),
        "currency": "USD",
        "fees": Decimal("10"),
        "exchange_rate": Decimal("0.92"),
    }
    data.update(overrides)
    return TransactionCreate(**data)


# =============================================================================
# ADD
# =============================================================================

class TestAddTransaction:

    def test_computes_total_eur(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create())

        assert txn.total_eur == Decimal("3873.2")
        assert txn.exchange_rate == Decimal("0.92")
        assert txn.asset.ticker == "BTC"
        assert txn.asset.asset_type == AssetType.CRYPTO

    def test_usd_default_rate(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create(exchange_rate=None, fees=Decimal("0")))

        assert txn.exchange_rate == Decimal("0.92")
        assert txn.total_eur == Decimal("3864")

    def test_eur_rate_forced_to_one(self, db, transaction_service):
        txn = transaction_service.add_transaction(
            db, _create(currency="EUR", exchange_rate=Decimal("0.5"), fees=Decimal("0"))
        )

        assert txn.exchange_rate == Decimal("1")
        assert txn.total_eur == Decimal("4200")

    def test_other_currency_requires_rate(self, db, transaction_service):
        with pytest.raises(ValidationError) as exc_info:
            transaction_service.add_transaction(db, _create(currency="GBP", exchange_rate=None))

        assert exc_info.value.field == "exchange_rate"
        assert db.query(Asset).count() == 0
        assert db.query(Transaction).count() == 0

    def test_other_currency_with_rate(self, db, transaction_service):
        txn = transaction_service.add_transaction(
            db, _create(currency="GBP", exchange_rate=Decimal("1.2"), fees=Decimal("0"))
        )

        assert txn.total_eur == Decimal("5040")

    def test_reuses_existing_asset(self, db, transaction_service):
        first = transaction_service.add_transaction(db, _create())
        second = transaction_service.add_transaction(db, _create(ticker="btc", name="Ignored"))

        assert first.asset_id == second.asset_id
        assert second.asset.name == "Bitcoin"
        assert db.query(Asset).count() == 1

    def test_new_asset_defaults(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create(ticker="MSFT", name=None, asset_type=None))

        assert txn.asset.name == "MSFT"
        assert txn.asset.asset_type == AssetType.STOCK

    def test_buy_records_benchmark(self, db, transaction_service, mock_provider):
        add_index_quotes(mock_provider)

        txn = transaction_service.add_transaction(db, _create())

        assert txn.benchmark is not None
        assert len(txn.benchmark.prices) == 6

    def test_sell_records_no_benchmark(self, db, transaction_service, mock_provider):
        add_index_quotes(mock_provider)

        txn = transaction_service.add_transaction(db, _create(transaction_type=TransactionType.SELL))

        assert txn.benchmark is None

    def test_buy_without_index_prices_still_saved(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create())

        assert txn.id is not None
        assert db.query(TransactionBenchmark).count() == 0


# =============================================================================
# READ
# =============================================================================

class TestReadTransactions:

    def test_most_recent_first(self, db, transaction_service):
        older = transaction_service.add_transaction(db, _create(date=datetime(2024, 1, 1, tzinfo=timezone.utc)))
        newer = transaction_service.add_transaction(db, _create(date=datetime(2024, 2, 1, tzinfo=timezone.utc)))

        assert [t.id for t in transaction_service.get_transactions(db)] == [newer.id, older.id]

    def test_get_missing(self, db, transaction_service):
        with pytest.raises(TransactionNotFoundError):
            transaction_service.get_transaction(db, 42)

    def test_list_assets_sorted(self, db, transaction_service):
        transaction_service.add_transaction(db, _create(ticker="ETH"))
        transaction_service.add_transaction(db, _create(ticker="AAPL"))

        assert [a.ticker for a in transaction_service.list_assets(db)] == ["AAPL", "ETH"]


# =============================================================================
# UPDATE
# =============================================================================

class TestUpdateTransaction:

    def test_recomputes_total_eur(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create())

        updated = transaction_service.update_transaction(db, txn.id, TransactionUpdate(quantity=Decimal("0.2")))

        assert updated.total_eur == Decimal("7737.2")
        assert updated.exchange_rate == Decimal("0.92")

    def test_new_rate(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create(fees=Decimal("0")))

        updated = transaction_service.update_transaction(
            db, txn.id, TransactionUpdate(exchange_rate=Decimal("0.9"))
        )

        assert updated.total_eur == Decimal("3780")

    def test_currency_change_to_eur(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create(fees=Decimal("0")))

        updated = transaction_service.update_transaction(db, txn.id, TransactionUpdate(currency="eur"))

        assert updated.currency == "EUR"
        assert updated.exchange_rate == Decimal("1")
        assert updated.total_eur == Decimal("4200")

    def test_invalid_currency_leaves_row_untouched(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create())

        with pytest.raises(ValidationError):
            transaction_service.update_transaction(
                db, txn.id, TransactionUpdate(currency="GBP", quantity=Decimal("5"))
            )

        db.expire_all()
        stored = db.get(Transaction, txn.id)
        assert stored.currency == "USD"
        assert stored.quantity == Decimal("0.1")

    def test_empty_update_is_noop(self, db, transaction_service):
        txn = transaction_service.add_transaction(db, _create())

        updated = transaction_service.update_transaction(db, txn.id, TransactionUpdate())

        assert updated.total_eur == Decimal("3873.2")

    def test_existing_benchmark_kept(self, db, transaction_service, quote_service, mock_provider):
        add_index_quotes(mock_provider, msci_world="125", eur_usd="1.25")
        txn = transaction_service.add_transaction(db, _create())
        mock_provider.add_quote("URTH", "250")
        quote_service.cache.clear()

        updated = transaction_service.update_transaction(db, txn.id, TransactionUpdate(quantity=Decimal("1")))

        assert updated.benchmark.price_map()["msci_world"] == Decimal("100")

    def test_sell_turned_buy_gets_benchmark_at_its_date(self, db, transaction_service, mock_provider):
        txn = transaction_service.add_transaction(db, _create(transaction_type=TransactionType.SELL))
        add_index_quotes(mock_provider, msci_world="250", eur_usd="1.25")
        mock_provider.add_history("URTH", {date(2024, 1, 12): "125", date(2024, 1, 16): "130"})

        updated = transaction_service.update_transaction(
            db, txn.id, TransactionUpdate(transaction_type=TransactionType.BUY)
        )

        prices = updated.benchmark.price_map()
        assert prices["msci_world"] == Decimal("100")
        assert prices["sp500"] == Decimal("0")

    def test_missing(self, db, transaction_service):
        with pytest.raises(TransactionNotFoundError):
            transaction_service.update_transaction(db, 42, TransactionUpdate(quantity=Decimal("1")))


# =============================================================================
# DELETE
# =============================================================================

class TestDeleteTransaction:

    def test_last_transaction_removes_asset(self, db, transaction_service, mock_provider):
        add_index_quotes(mock_provider)
        txn = transaction_service.add_transaction(db, _create())

        transaction_service.delete_transaction(db, txn.id)

        assert db.query(Transaction).count() == 0
        assert db.query(Asset).count() == 0
        assert db.query(TransactionBenchmark).count() == 0

    def test_asset_kept_while_used(self, db, transaction_service):
        first = transaction_service.add_transaction(db, _create())
        transaction_service.add_transaction(db, _create())

        transaction_service.delete_transaction(db, first.id)

        assert db.query(Transaction).count() == 1
        assert db.query(Asset).count() == 1

    def test_missing(self, db, transaction_service):
        with pytest.raises(TransactionNotFoundError):
            transaction_service.delete_transaction(db, 42)
