# backend/portfolio_tracker/schemas/assets.py
"""
Pydantic schemas for Asset responses and ticker search.

Assets are never created directly: the first transaction on a ticker
creates its asset. These schemas are output-only.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from portfolio_tracker.models import AssetType


class AssetResponse(BaseModel):
    id: int = Field(..., description="Unique identifier")
    ticker: str = Field(..., examples=["BTC", "AAPL"], description="Upper-cased ticker")
    name: str = Field(..., examples=["Bitcoin", "Apple Inc."])
    asset_type: AssetType = Field(..., examples=[AssetType.CRYPTO, AssetType.STOCK])
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TickerSearchResult(BaseModel):
    """One ticker search hit, typed for the transaction form."""

    symbol: str = Field(..., examples=["AAPL", "BTC-USD"])
    name: str = Field(..., examples=["Apple Inc."])
    type: AssetType = Field(..., description="Asset type inferred from the provider's quote type")
