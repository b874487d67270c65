# backend/portfolio_tracker/services/benchmark/types.py
"""
Internal data types for the Benchmark Service.

Theoretical units answer "what if every EUR invested had bought the index
instead": each BUY adds total_eur / index_price_at_entry units per index.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


@dataclass
class TheoreticalUnits:
    """
    Cumulative index units over all benchmarked BUY transactions.

    Attributes:
        units: Index key → units accumulated (0 for indices never priced)
        total_invested: Sum of total_eur of the BUYs that carry a benchmark
    """

    units: dict[str, Decimal]
    total_invested: Decimal


@dataclass(frozen=True)
class BenchmarkValue:
    key: str
    name: str
    units: Decimal
    price: Decimal
    value: Decimal


@dataclass
class CurrentBenchmarks:
    values: dict[str, BenchmarkValue]
    total_invested: Decimal


@dataclass(frozen=True)
class IndexHistoryPoint:
    date: date
    value: Decimal


@dataclass
class BackfillResult:
    """
    Outcome of a benchmark backfill run.

    Attributes:
        created: BUY transactions that received a benchmark
        skipped: BUY transactions that already had one
        failed: BUY transactions for which no index close could be found
    """

    created: int = 0
    skipped: int = 0
    failed: int = 0
    failed_transaction_ids: list[int] = field(default_factory=list)
