#!/usr/bin/env python3
# backend/init_db.py
"""
Create the portfolio tables directly from the models.

Meant for development and SQLite. PostgreSQL deployments apply
alembic/versions/001_initial_schema.py instead.

Run from the repository root or from backend/:
    python backend/init_db.py
    python backend/init_db.py --drop    # start from an empty ledger
"""
import argparse
import sys
from pathlib import Path

# Add the backend directory to Python path so 'portfolio_tracker' is importable
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))

from portfolio_tracker.config import settings
from portfolio_tracker.database import engine
from portfolio_tracker.models import Base


def init_db(drop: bool = False) -> None:
    """Create every table (assets, transactions, benchmarks, snapshots)."""
    backend = "sqlite" if settings.is_sqlite else "postgresql"
    if drop:
        print(f"Dropping portfolio tables ({backend})...")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    for table in Base.metadata.sorted_tables:
        print(f"  {table.name}")
    print(f"{len(Base.metadata.sorted_tables)} tables ready ({backend})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the portfolio tracker tables")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()
    init_db(drop=args.drop)
