# backend/portfolio_tracker/services/benchmark/__init__.py
"""
Benchmark ledger package.

Usage:
    from portfolio_tracker.services.benchmark import BenchmarkService

    service = BenchmarkService(quote_service)
    service.record_benchmark_for_transaction(db, transaction.id)
    current = service.current_benchmark_values(db)
"""

from portfolio_tracker.services.benchmark.service import BenchmarkService
from portfolio_tracker.services.benchmark.types import (
    TheoreticalUnits,
    BenchmarkValue,
    CurrentBenchmarks,
    IndexHistoryPoint,
    BackfillResult,
)

__all__ = [
    "BenchmarkService",
    "TheoreticalUnits",
    "BenchmarkValue",
    "CurrentBenchmarks",
    "IndexHistoryPoint",
    "BackfillResult",
]
