# backend/portfolio_tracker/schemas/__init__.py
"""Pydantic request/response schemas for the HTTP API."""

from portfolio_tracker.schemas.assets import AssetResponse, TickerSearchResult
from portfolio_tracker.schemas.benchmarks import (
    MarketIndexResponse,
    BenchmarkValueResponse,
    CurrentBenchmarksResponse,
    IndexHistoryPointResponse,
    IndexHistoryResponse,
    BackfillResponse,
)
from portfolio_tracker.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_tracker.schemas.portfolio import (
    HoldingResponse,
    PortfolioSummaryResponse,
    PortfolioResponse,
    HistoryPointResponse,
)
from portfolio_tracker.schemas.snapshots import SnapshotSummary, SnapshotTriggerResponse
from portfolio_tracker.schemas.transactions import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
)

__all__ = [
    "AssetResponse",
    "TickerSearchResult",
    "MarketIndexResponse",
    "BenchmarkValueResponse",
    "CurrentBenchmarksResponse",
    "IndexHistoryPointResponse",
    "IndexHistoryResponse",
    "BackfillResponse",
    "ErrorDetail",
    "ValidationErrorDetail",
    "HoldingResponse",
    "PortfolioSummaryResponse",
    "PortfolioResponse",
    "HistoryPointResponse",
    "SnapshotSummary",
    "SnapshotTriggerResponse",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
]
