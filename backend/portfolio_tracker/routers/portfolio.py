# backend/portfolio_tracker/routers/portfolio.py
"""
Portfolio valuation and history endpoints.

- GET /portfolio/         Current holdings, P&L and summary (live prices)
- GET /portfolio/history  Snapshot series with benchmark values
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_valuation_service, get_snapshot_service
from portfolio_tracker.schemas.portfolio import PortfolioResponse, HistoryPointResponse
from portfolio_tracker.services.snapshot_service import SnapshotService, HistoryPoint
from portfolio_tracker.services.valuation import ValuationService, PortfolioValuation

router = APIRouter(
    prefix="/portfolio",
    tags=["Portfolio"],
)


@router.get(
    "/",
    response_model=PortfolioResponse,
    summary="Current portfolio valuation",
)
def get_portfolio(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[ValuationService, Depends(get_valuation_service)],
) -> PortfolioValuation:
    """
    Value every open position at the current price.

    Prices come from the live quote, then the static fallback table. A
    holding with neither is returned with `price_source: UNPRICED`, null
    value fields, and is left out of the summary (see `unpriced_tickers`).
    """
    return service.get_portfolio_data(db)


@router.get(
    "/history",
    response_model=list[HistoryPointResponse],
    summary="Portfolio value history",
)
def get_portfolio_history(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[SnapshotService, Depends(get_snapshot_service)],
) -> list[HistoryPoint]:
    """Snapshots in ascending order; benchmarks valued as units × price at each snapshot."""
    return service.get_portfolio_history(db)
