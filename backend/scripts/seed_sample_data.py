#!/usr/bin/env python3
# backend/scripts/seed_sample_data.py
"""
Seed a demo portfolio through TransactionService, so every BUY gets its
benchmark recorded exactly as through the API.

Usage:
    python backend/scripts/seed_sample_data.py
"""
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

# Setup path to import portfolio_tracker modules
backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from sqlalchemy import select

from portfolio_tracker.database import SessionLocal
from portfolio_tracker.dependencies import get_transaction_service
from portfolio_tracker.models import AssetType, Transaction, TransactionType
from portfolio_tracker.schemas.transactions import TransactionCreate
from portfolio_tracker.utils import setup_logging

logger = logging.getLogger(__name__)

SAMPLE_TRANSACTIONS = [
    TransactionCreate(
        ticker="BTC",
        name="Bitcoin",
        asset_type=AssetType.CRYPTO,
        transaction_type=TransactionType.BUY,
        date=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        quantity=Decimal("0.1"),
        unit_price=Decimal("42000"),
        currency="USD",
        fees=Decimal("10"),
        exchange_rate=Decimal("0.92"),
    ),
    TransactionCreate(
        ticker="IWDA",
        name="iShares Core MSCI World",
        asset_type=AssetType.ETF,
        transaction_type=TransactionType.BUY,
        date=datetime(2024, 2, 20, 11, 0, tzinfo=timezone.utc),
        quantity=Decimal("50"),
        unit_price=Decimal("85.50"),
        currency="EUR",
        fees=Decimal("5"),
    ),
    TransactionCreate(
        ticker="AAPL",
        name="Apple Inc.",
        asset_type=AssetType.STOCK,
        transaction_type=TransactionType.BUY,
        date=datetime(2024, 3, 5, 15, 45, tzinfo=timezone.utc),
        quantity=Decimal("10"),
        unit_price=Decimal("170"),
        currency="USD",
        fees=Decimal("1"),
    ),
    TransactionCreate(
        ticker="BTC",
        transaction_type=TransactionType.WITHDRAW,
        date=datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc),
        quantity=Decimal("0.02"),
        unit_price=Decimal("62000"),
        currency="USD",
        exchange_rate=Decimal("0.93"),
    ),
]


def seed() -> None:
    service = get_transaction_service()
    db = SessionLocal()
    try:
        if db.scalar(select(Transaction.id).limit(1)) is not None:
            logger.info("Transactions already present, skipping seed")
            return

        for data in SAMPLE_TRANSACTIONS:
            transaction = service.add_transaction(db, data)
            logger.info(
                f"Created {transaction.transaction_type.value} {transaction.quantity} "
                f"{data.ticker} ({transaction.total_eur:.2f} EUR)"
            )

        logger.info("Seeding complete")
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    seed()
