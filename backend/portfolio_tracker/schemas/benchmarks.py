# backend/portfolio_tracker/schemas/benchmarks.py
"""Pydantic schemas for benchmark and market index responses."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class MarketIndexResponse(BaseModel):
    key: str = Field(..., examples=["msci_world"])
    symbol: str = Field(..., examples=["URTH"])
    name: str = Field(..., examples=["MSCI World"])
    currency: str
    color: str = Field(..., description="Chart colour")
    tracked: bool = Field(..., description="Whether BUY transactions record this index")

    model_config = ConfigDict(from_attributes=True)


class BenchmarkValueResponse(BaseModel):
    key: str
    name: str
    units: Decimal = Field(..., description="Cumulative theoretical units")
    price: Decimal = Field(..., description="Current EUR price (0 if unavailable)")
    value: Decimal = Field(..., description="units × price")

    model_config = ConfigDict(from_attributes=True)


class CurrentBenchmarksResponse(BaseModel):
    values: dict[str, BenchmarkValueResponse]
    total_invested: Decimal

    model_config = ConfigDict(from_attributes=True)


class IndexHistoryPointResponse(BaseModel):
    date: date
    value: Decimal = Field(..., description="Daily close in the index currency")

    model_config = ConfigDict(from_attributes=True)


class IndexHistoryResponse(BaseModel):
    key: str
    name: str
    symbol: str
    currency: str
    points: list[IndexHistoryPointResponse]


class BackfillResponse(BaseModel):
    created: int
    skipped: int
    failed: int
    failed_transaction_ids: list[int] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
