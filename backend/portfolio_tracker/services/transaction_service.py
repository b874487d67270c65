# backend/portfolio_tracker/services/transaction_service.py
"""
Transaction Service - the only write path into the ledger.

Operations:
- add_transaction(): find-or-create the asset, freeze the FX rate, compute
  total_eur, and record the benchmark for a BUY
- update_transaction(): merge changed fields and recompute total_eur
- delete_transaction(): remove a transaction; an asset left without
  transactions is removed too
- get_transaction() / get_transactions() / list_assets(): reads

All input is validated before the session is modified: schema constraints
are enforced by Pydantic, currency/rate consistency here. A rejected request
leaves the database untouched.

Benchmark recording happens after the transaction is committed and never
fails the request: if index prices are unavailable the transaction is
simply left for a later backfill.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from portfolio_tracker.config import settings
from portfolio_tracker.models import Asset, AssetType, Transaction, TransactionType
from portfolio_tracker.schemas.transactions import TransactionCreate, TransactionUpdate
from portfolio_tracker.services.benchmark import BenchmarkService
from portfolio_tracker.services.constants import EUR, USD
from portfolio_tracker.services.exceptions import TransactionNotFoundError, ValidationError
from portfolio_tracker.services.valuation.calculators import compute_total_eur

logger = logging.getLogger(__name__)


class TransactionService:
    """
    Ledger mutations and reads.

    Attributes:
        _benchmark_service: Records index prices for new BUY transactions
        _default_usd_rate: EUR per USD applied when a USD transaction has no rate
    """

    def __init__(
            self,
            benchmark_service: BenchmarkService,
            default_usd_rate: Decimal | None = None,
    ) -> None:
        self._benchmark_service = benchmark_service
        self._default_usd_rate = default_usd_rate or settings.default_usd_exchange_rate

    # =========================================================================
    # READ
    # =========================================================================

    def get_transaction(self, db: Session, transaction_id: int) -> Transaction:
        transaction = db.scalar(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .options(joinedload(Transaction.asset))
        )
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    def get_transactions(self, db: Session) -> list[Transaction]:
        """All transactions, most recent first, with their asset loaded."""
        return list(db.scalars(
            select(Transaction)
            .options(joinedload(Transaction.asset))
            .order_by(Transaction.date.desc(), Transaction.id.desc())
        ).all())

    def list_assets(self, db: Session) -> list[Asset]:
        return list(db.scalars(select(Asset).order_by(Asset.ticker)).all())

    # =========================================================================
    # WRITE
    # =========================================================================

    def add_transaction(self, db: Session, data: TransactionCreate) -> Transaction:
        """
        Record a transaction.

        Raises:
            ValidationError: Currency other than EUR/USD without an exchange rate
        """
        exchange_rate = self._resolve_exchange_rate(data.currency, data.exchange_rate)
        total_eur = compute_total_eur(
            data.quantity, data.unit_price, data.fees, data.currency, exchange_rate
        )

        asset = self._get_or_create_asset(db, data)
        transaction = Transaction(
            asset=asset,
            transaction_type=data.transaction_type,
            date=data.date,
            quantity=data.quantity,
            unit_price=data.unit_price,
            currency=data.currency,
            fees=data.fees,
            exchange_rate=exchange_rate,
            total_eur=total_eur,
        )
        db.add(transaction)
        db.commit()
        db.refresh(transaction)

        logger.info(
            f"Recorded {transaction.transaction_type.value} {transaction.quantity} "
            f"{asset.ticker} (id={transaction.id}, total_eur={total_eur})"
        )

        if transaction.transaction_type == TransactionType.BUY:
            self._record_benchmark(db, transaction)

        return transaction

    def update_transaction(
            self,
            db: Session,
            transaction_id: int,
            data: TransactionUpdate,
    ) -> Transaction:
        """
        Update a transaction and recompute its total_eur.

        Changing the currency without a new rate re-applies the default rate
        of the new currency. An existing benchmark is left as recorded. A
        transaction that becomes a BUY without one gets a benchmark from the
        index closes of its own date (current prices when dated today).

        Raises:
            TransactionNotFoundError: Transaction does not exist
            ValidationError: Resulting currency/rate combination is invalid
        """
        transaction = self.get_transaction(db, transaction_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return transaction

        currency = changes.get("currency", transaction.currency)
        if "exchange_rate" in changes:
            exchange_rate = self._resolve_exchange_rate(currency, changes["exchange_rate"])
        elif "currency" in changes and currency != transaction.currency:
            exchange_rate = self._resolve_exchange_rate(currency, None)
        else:
            exchange_rate = self._resolve_exchange_rate(currency, transaction.exchange_rate)

        quantity = changes.get("quantity", transaction.quantity)
        unit_price = changes.get("unit_price", transaction.unit_price)
        fees = changes.get("fees", transaction.fees)
        total_eur = compute_total_eur(quantity, unit_price, fees, currency, exchange_rate)

        # Validation done, apply
        for field, value in changes.items():
            setattr(transaction, field, value)
        transaction.exchange_rate = exchange_rate
        transaction.total_eur = total_eur
        db.commit()
        db.refresh(transaction)

        logger.info(f"Updated transaction {transaction_id}: {sorted(changes)}")

        if transaction.transaction_type == TransactionType.BUY and transaction.benchmark is None:
            trade_date = transaction.date.date()
            if trade_date < datetime.now(timezone.utc).date():
                self._record_benchmark(db, transaction, on_date=trade_date)
            else:
                self._record_benchmark(db, transaction)

        return transaction

    def delete_transaction(self, db: Session, transaction_id: int) -> None:
        """
        Delete a transaction, and its asset if no other transaction uses it.

        Raises:
            TransactionNotFoundError: Transaction does not exist
        """
        transaction = self.get_transaction(db, transaction_id)
        asset = transaction.asset

        # delete-orphan cascade removes the row (and its benchmark) on commit
        asset.transactions.remove(transaction)

        if not asset.transactions:
            db.delete(asset)
            logger.info(f"Deleted transaction {transaction_id} and its asset {asset.ticker}")
        else:
            logger.info(f"Deleted transaction {transaction_id} ({asset.ticker})")

        db.commit()

    # =========================================================================
    # PRIVATE
    # =========================================================================

    def _resolve_exchange_rate(self, currency: str, exchange_rate: Decimal | None) -> Decimal:
        """EUR per unit of `currency`; EUR is always 1."""
        if currency == EUR:
            return Decimal("1")
        if exchange_rate is not None:
            return exchange_rate
        if currency == USD:
            return self._default_usd_rate
        raise ValidationError(
            f"An exchange rate is required for {currency} transactions",
            field="exchange_rate",
        )

    @staticmethod
    def _get_or_create_asset(db: Session, data: TransactionCreate) -> Asset:
        asset = db.scalar(select(Asset).where(Asset.ticker == data.ticker))
        if asset is not None:
            return asset

        asset = Asset(
            ticker=data.ticker,
            name=data.name or data.ticker,
            asset_type=data.asset_type or AssetType.STOCK,
        )
        db.add(asset)
        logger.info(f"Created asset {asset.ticker} ({asset.asset_type.value})")
        return asset

    def _record_benchmark(
            self,
            db: Session,
            transaction: Transaction,
            on_date: date | None = None,
    ) -> None:
        try:
            self._benchmark_service.record_benchmark_for_transaction(db, transaction.id, on_date=on_date)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to record benchmark for transaction {transaction.id}: {e}")
