# backend/portfolio_tracker/services/benchmark/service.py
"""
Benchmark Service - records index prices per BUY and derives the
"what if I had bought the index" comparison.

Responsibilities:
- fetch_index_prices(): current EUR price of each tracked index
- record_benchmark_for_transaction(): freeze those prices against a BUY
- cumulative_theoretical_units(): Σ total_eur / price_at_entry per index
- current_benchmark_values(): units × current price
- get_index_history(): daily closes of any registered index (charts)
- backfill_benchmarks(): historical prices for BUYs recorded without one

Price convention:
    All stored prices are EUR. USD-quoted indices are divided by EURUSD,
    EUR-quoted ones (CAC 40) pass through. A price that cannot be obtained
    is stored as 0 and that index is skipped when accumulating units.

Known limitation:
    A benchmark is written once, when the BUY is recorded. Editing the
    transaction later does not refresh it, so units for an edited BUY keep
    the original entry-time prices.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from portfolio_tracker.models import (
    Transaction,
    TransactionType,
    TransactionBenchmark,
    BenchmarkPrice,
)
from portfolio_tracker.services.constants import BACKFILL_LOOKBACK_DAYS, ZERO
from portfolio_tracker.services.exceptions import TransactionNotFoundError
from portfolio_tracker.services.market_data.indices import (
    IndexRegistry,
    MarketIndex,
    DEFAULT_INDEX_REGISTRY,
)
from portfolio_tracker.services.quote_service import QuoteService
from portfolio_tracker.services.benchmark.types import (
    TheoreticalUnits,
    BenchmarkValue,
    CurrentBenchmarks,
    IndexHistoryPoint,
    BackfillResult,
)

logger = logging.getLogger(__name__)


class BenchmarkService:
    """
    Benchmark ledger over the tracked indices of an IndexRegistry.

    Attributes:
        _quote_service: Live quotes, history and FX
        _registry: Known indices (tracked ones take part in the ledger)
    """

    def __init__(
            self,
            quote_service: QuoteService,
            registry: IndexRegistry = DEFAULT_INDEX_REGISTRY,
    ) -> None:
        self._quote_service = quote_service
        self._registry = registry

    @property
    def registry(self) -> IndexRegistry:
        return self._registry

    # =========================================================================
    # INDEX PRICES
    # =========================================================================

    def fetch_index_prices(self) -> dict[str, Decimal]:
        """
        Current EUR price of every tracked index.

        Returns:
            Index key → EUR price, 0 where no price is available
        """
        tracked = self._registry.tracked
        quotes = self._quote_service.get_symbol_quotes(index.symbol for index in tracked)
        eur_usd_rate = self._quote_service.get_eur_usd_rate()

        prices: dict[str, Decimal] = {}
        for index in tracked:
            quote = quotes.get(index.symbol)
            if quote is None:
                logger.warning(f"No current price for index {index.key} ({index.symbol})")
                prices[index.key] = ZERO
                continue
            prices[index.key] = self._index_price_eur(index, quote.price, eur_usd_rate)

        return prices

    def historical_index_prices(self, on_date: date, eur_usd_rate: Decimal | None = None) -> dict[str, Decimal]:
        """
        EUR close of every tracked index on or shortly before a date.

        Looks back BACKFILL_LOOKBACK_DAYS to cover weekends and holidays and
        takes the last close on or before `on_date`. Conversion uses the
        current EURUSD rate, not the historical one.
        """
        if eur_usd_rate is None:
            eur_usd_rate = self._quote_service.get_eur_usd_rate()

        start = on_date - timedelta(days=BACKFILL_LOOKBACK_DAYS)
        prices: dict[str, Decimal] = {}

        for index in self._registry.tracked:
            points = [
                p for p in self._quote_service.get_symbol_history(index.symbol, start, on_date)
                if p.date <= on_date
            ]
            if not points:
                logger.debug(f"No close for {index.key} between {start} and {on_date}")
                prices[index.key] = ZERO
                continue
            prices[index.key] = self._index_price_eur(index, points[-1].close, eur_usd_rate)

        return prices

    def get_index_history(
            self,
            key: str,
            start_date: date,
            end_date: date | None = None,
    ) -> list[IndexHistoryPoint]:
        """
        Daily closes of a registered index, in its own currency.

        Raises:
            UnknownIndexError: Key not in the registry
        """
        index = self._registry.get(key)
        points = self._quote_service.get_symbol_history(index.symbol, start_date, end_date)
        return [IndexHistoryPoint(date=p.date, value=p.close) for p in points]

    # =========================================================================
    # LEDGER
    # =========================================================================

    def record_benchmark_for_transaction(
            self,
            db: Session,
            transaction_id: int,
            on_date: date | None = None,
    ) -> TransactionBenchmark | None:
        """
        Freeze the index prices against a transaction.

        Current prices are used, or the last closes on or before `on_date`
        when it is given (as the backfill does).

        Idempotent: an existing benchmark is returned unchanged. When no index
        price at all can be obtained nothing is written, leaving the
        transaction for a later backfill.

        Raises:
            TransactionNotFoundError: Transaction does not exist
        """
        transaction = db.get(Transaction, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)

        if transaction.benchmark is not None:
            logger.debug(f"Transaction {transaction_id} already has a benchmark")
            return transaction.benchmark

        if on_date is None:
            prices = self.fetch_index_prices()
        else:
            prices = self.historical_index_prices(on_date)
        if all(price == ZERO for price in prices.values()):
            logger.warning(
                f"No index prices available, benchmark for transaction {transaction_id} not recorded"
            )
            return None

        benchmark = self._store_benchmark(db, transaction, prices)
        db.commit()
        db.refresh(benchmark)

        logger.info(f"Recorded benchmark for transaction {transaction_id}")
        return benchmark

    def cumulative_theoretical_units(self, db: Session) -> TheoreticalUnits:
        """
        Units of each tracked index bought by all benchmarked BUYs.

        An index whose recorded price is 0 (or missing) is skipped for that
        transaction; the other indices still accumulate.
        """
        units = {index.key: ZERO for index in self._registry.tracked}
        total_invested = ZERO

        transactions = db.scalars(
            select(Transaction)
            .join(Transaction.benchmark)
            .where(Transaction.transaction_type == TransactionType.BUY)
            .options(selectinload(Transaction.benchmark).selectinload(TransactionBenchmark.prices))
        ).all()

        for transaction in transactions:
            price_map = transaction.benchmark.price_map()
            total_invested += transaction.total_eur
            for key in units:
                price = price_map.get(key)
                if price is None or price <= ZERO:
                    continue
                units[key] += transaction.total_eur / price

        return TheoreticalUnits(units=units, total_invested=total_invested)

    def current_benchmark_values(self, db: Session) -> CurrentBenchmarks:
        """Value today of the cumulative theoretical units, per tracked index."""
        theoretical = self.cumulative_theoretical_units(db)
        prices = self.fetch_index_prices()

        values: dict[str, BenchmarkValue] = {}
        for index in self._registry.tracked:
            units = theoretical.units.get(index.key, ZERO)
            price = prices.get(index.key, ZERO)
            values[index.key] = BenchmarkValue(
                key=index.key,
                name=index.name,
                units=units,
                price=price,
                value=units * price,
            )

        return CurrentBenchmarks(values=values, total_invested=theoretical.total_invested)

    # =========================================================================
    # BACKFILL
    # =========================================================================

    def backfill_benchmarks(self, db: Session) -> BackfillResult:
        """
        Record historical index prices for BUY transactions without a benchmark.

        Each transaction is committed on its own so one failure does not lose
        the others.
        """
        result = BackfillResult()

        transactions = db.scalars(
            select(Transaction)
            .where(Transaction.transaction_type == TransactionType.BUY)
            .options(selectinload(Transaction.benchmark))
            .order_by(Transaction.date, Transaction.id)
        ).all()

        pending = []
        for transaction in transactions:
            if transaction.benchmark is not None:
                result.skipped += 1
            else:
                pending.append(transaction)

        if not pending:
            logger.info(f"Benchmark backfill: nothing to do ({result.skipped} already recorded)")
            return result

        eur_usd_rate = self._quote_service.get_eur_usd_rate()

        for transaction in pending:
            prices = self.historical_index_prices(transaction.date.date(), eur_usd_rate)
            if all(price == ZERO for price in prices.values()):
                logger.warning(
                    f"Benchmark backfill: no index close found for transaction "
                    f"{transaction.id} ({transaction.date.date()})"
                )
                result.failed += 1
                result.failed_transaction_ids.append(transaction.id)
                continue

            self._store_benchmark(db, transaction, prices)
            db.commit()
            result.created += 1

        logger.info(
            f"Benchmark backfill complete: created={result.created}, "
            f"skipped={result.skipped}, failed={result.failed}"
        )
        return result

    # =========================================================================
    # PRIVATE
    # =========================================================================

    def _index_price_eur(self, index: MarketIndex, price: Decimal, eur_usd_rate: Decimal) -> Decimal:
        price_eur = self._quote_service.to_eur(price, index.currency, eur_usd_rate)
        if price_eur is None:
            logger.warning(f"Cannot convert {index.key} from {index.currency}, recording 0")
            return ZERO
        return price_eur

    @staticmethod
    def _store_benchmark(
            db: Session,
            transaction: Transaction,
            prices: dict[str, Decimal],
    ) -> TransactionBenchmark:
        benchmark = TransactionBenchmark(
            transaction=transaction,
            prices=[BenchmarkPrice(index_key=key, price=price) for key, price in prices.items()],
        )
        db.add(benchmark)
        return benchmark
