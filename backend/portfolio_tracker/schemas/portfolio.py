# backend/portfolio_tracker/schemas/portfolio.py
"""
Pydantic schemas for portfolio valuation and history responses.

Mirror the internal dataclasses of services/valuation/types.py and
services/snapshot_service.py; built with from_attributes.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.services.valuation.types import PriceSource


class HoldingResponse(BaseModel):
    """
    One open position.

    Value fields are null when `price_source` is UNPRICED.
    """

    asset_id: int
    ticker: str
    name: str
    asset_type: str
    quantity: Decimal
    pru: Decimal = Field(..., description="Average purchase price in EUR (fees included)")
    invested: Decimal = Field(..., description="quantity × pru")
    price_source: PriceSource
    current_price: Decimal | None = Field(default=None, description="EUR price per unit")
    current_value: Decimal | None = None
    pnl: Decimal | None = None
    pnl_percent: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class PortfolioSummaryResponse(BaseModel):
    total_value: Decimal
    total_invested: Decimal
    total_pnl: Decimal
    total_pnl_percent: Decimal
    unpriced_tickers: list[str] = Field(
        default_factory=list,
        description="Holdings left out of the totals because no price was available"
    )

    model_config = ConfigDict(from_attributes=True)


class PortfolioResponse(BaseModel):
    holdings: list[HoldingResponse]
    summary: PortfolioSummaryResponse

    model_config = ConfigDict(from_attributes=True)


class HistoryPointResponse(BaseModel):
    """One snapshot with benchmark values computed as units × price."""

    timestamp: datetime = Field(..., description="Bucket start (UTC)")
    date: str = Field(..., examples=["2026-01-15"])
    time: str = Field(..., examples=["14:30"])
    portfolio_value: Decimal
    invested: Decimal
    benchmarks: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Index key → theoretical value in EUR"
    )

    model_config = ConfigDict(from_attributes=True)
