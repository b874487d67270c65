# backend/portfolio_tracker/routers/assets.py
"""
Asset endpoints.

Assets are created and removed by the transaction endpoints; here they can
only be listed. Ticker search helps fill in the transaction form.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_quote_service, get_transaction_service
from portfolio_tracker.models import Asset
from portfolio_tracker.schemas.assets import AssetResponse, TickerSearchResult
from portfolio_tracker.services.quote_service import QuoteService
from portfolio_tracker.services.transaction_service import TransactionService

router = APIRouter(
    prefix="/assets",
    tags=["Assets"],
)


@router.get(
    "/",
    response_model=list[AssetResponse],
    summary="List assets",
)
def list_assets(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> list[Asset]:
    """Every asset with at least one transaction, ordered by ticker."""
    return service.list_assets(db)


@router.get(
    "/search",
    response_model=list[TickerSearchResult],
    summary="Search tickers",
)
def search_tickers(
        service: Annotated[QuoteService, Depends(get_quote_service)],
        q: str = Query(default="", max_length=64, description="Free-text query (name or symbol)"),
) -> list[dict]:
    """
    Up to 10 provider symbols matching the query. The type is inferred from
    the provider's quote type (CRYPTO, ETF, otherwise STOCK).
    """
    return service.search_tickers(q)
