# backend/portfolio_tracker/routers/benchmarks.py
"""
Benchmark endpoints.

- GET  /benchmarks/                   Registered market indices
- GET  /benchmarks/current            Theoretical index holdings valued today
- GET  /benchmarks/{key}/history      Daily closes of one index
- POST /benchmarks/backfill?secret=   Record missing benchmarks from history
"""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_benchmark_service
from portfolio_tracker.middleware.rate_limit import limiter, RATE_LIMIT_SNAPSHOT
from portfolio_tracker.routers.snapshots import require_snapshot_secret
from portfolio_tracker.schemas.benchmarks import (
    MarketIndexResponse,
    CurrentBenchmarksResponse,
    IndexHistoryResponse,
    IndexHistoryPointResponse,
    BackfillResponse,
)
from portfolio_tracker.services.benchmark import (
    BenchmarkService,
    CurrentBenchmarks,
    BackfillResult,
)
from portfolio_tracker.services.exceptions import ValidationError
from portfolio_tracker.services.market_data import MarketIndex

router = APIRouter(
    prefix="/benchmarks",
    tags=["Benchmarks"],
)


@router.get(
    "/",
    response_model=list[MarketIndexResponse],
    summary="List market indices",
)
def list_indices(
        service: Annotated[BenchmarkService, Depends(get_benchmark_service)],
) -> list[MarketIndex]:
    return list(service.registry.indices)


@router.get(
    "/current",
    response_model=CurrentBenchmarksResponse,
    summary="Current benchmark values",
)
def get_current_benchmarks(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[BenchmarkService, Depends(get_benchmark_service)],
) -> CurrentBenchmarks:
    """
    What the invested amount would be worth today had each BUY bought the
    index instead, per tracked index.
    """
    return service.current_benchmark_values(db)


@router.get(
    "/{key}/history",
    response_model=IndexHistoryResponse,
    summary="Index price history",
)
def get_index_history(
        key: str,
        service: Annotated[BenchmarkService, Depends(get_benchmark_service)],
        start_date: date = Query(..., description="First day (inclusive)"),
        end_date: date | None = Query(default=None, description="Last day (inclusive, default: today)"),
) -> IndexHistoryResponse:
    """
    Daily closes of a registered index in its own currency.

    Unknown keys return 400 with the list of valid keys.
    """
    if end_date is not None and end_date < start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")

    index = service.registry.get(key)
    points = service.get_index_history(key, start_date, end_date)
    return IndexHistoryResponse(
        key=index.key,
        name=index.name,
        symbol=index.symbol,
        currency=index.currency,
        points=[IndexHistoryPointResponse(date=p.date, value=p.value) for p in points],
    )


@router.post(
    "/backfill",
    response_model=BackfillResponse,
    summary="Backfill missing benchmarks",
    dependencies=[Depends(require_snapshot_secret)],
)
@limiter.limit(RATE_LIMIT_SNAPSHOT)
def backfill_benchmarks(
        request: Request,  # Required for rate limiting
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[BenchmarkService, Depends(get_benchmark_service)],
) -> BackfillResult:
    """
    For every BUY without a benchmark, record the last index closes on or
    before its date (converted at today's EURUSD).
    """
    return service.backfill_benchmarks(db)
