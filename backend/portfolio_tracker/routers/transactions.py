# backend/portfolio_tracker/routers/transactions.py
"""
Transaction management endpoints.

The ledger is the single source of truth: holdings, P&L and benchmark units
are all derived from it.

Key concepts:
- A transaction references ONE asset, found (or created) by ticker
- total_eur is computed at entry with the rate given or defaulted then,
  and never re-derived from market data
- Recording a BUY also freezes the current index prices against it
- The ticker cannot be changed; delete and re-create instead
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_transaction_service
from portfolio_tracker.middleware.rate_limit import limiter, RATE_LIMIT_WRITE
from portfolio_tracker.models import Transaction
from portfolio_tracker.schemas.transactions import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
)
from portfolio_tracker.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"],
)


@router.post(
    "/",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a transaction",
    response_description="The created transaction"
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_transaction(
        request: Request,  # Required for rate limiting
        transaction: TransactionCreate,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> Transaction:
    """
    Record a BUY, SELL or WITHDRAW.

    - **ticker**: The asset is created on first use (name defaults to the
      ticker, asset_type to STOCK)
    - **currency**: EUR or USD; other currencies require **exchange_rate**
    - **exchange_rate**: EUR per unit of currency. Defaults to 1 for EUR
      and the configured rate for USD
    - **fees**: In the transaction currency, added before conversion
    """
    return service.add_transaction(db, transaction)


@router.get(
    "/",
    response_model=list[TransactionResponse],
    summary="List transactions",
)
def list_transactions(
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> list[Transaction]:
    """All transactions, most recent first, each with its asset."""
    return service.get_transactions(db)


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction",
)
def get_transaction(
        transaction_id: int,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> Transaction:
    return service.get_transaction(db, transaction_id)


@router.patch(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Update a transaction",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_transaction(
        request: Request,  # Required for rate limiting
        transaction_id: int,
        changes: TransactionUpdate,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> Transaction:
    """
    Change any of type, date, quantity, unit_price, currency, fees or
    exchange_rate. total_eur is recomputed.

    The benchmark recorded when the BUY was entered is kept as is.
    """
    return service.update_transaction(db, transaction_id, changes)


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a transaction",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_transaction(
        request: Request,  # Required for rate limiting
        transaction_id: int,
        db: Annotated[Session, Depends(get_db)],
        service: Annotated[TransactionService, Depends(get_transaction_service)],
) -> Response:
    """Delete a transaction. Its asset is removed once no transaction references it."""
    service.delete_transaction(db, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
