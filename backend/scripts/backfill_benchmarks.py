#!/usr/bin/env python3
# backend/scripts/backfill_benchmarks.py
"""
Record the missing benchmark of every BUY from historical index closes,
then take a snapshot so the history chart has a first point.

Usage:
    python backend/scripts/backfill_benchmarks.py
    python backend/scripts/backfill_benchmarks.py --no-snapshot
"""
import argparse
import logging
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from portfolio_tracker.database import SessionLocal
from portfolio_tracker.dependencies import get_benchmark_service, get_snapshot_service
from portfolio_tracker.utils import setup_logging

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Backfill transaction benchmarks")
    parser.add_argument(
        "--no-snapshot",
        action="store_true",
        help="Skip the snapshot taken after the backfill",
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        result = get_benchmark_service().backfill_benchmarks(db)
        logger.info(
            f"Backfill: {result.created} created, {result.skipped} skipped, {result.failed} failed"
        )
        if result.failed_transaction_ids:
            logger.warning(f"No index history for transactions: {result.failed_transaction_ids}")

        if not args.no_snapshot:
            snapshot = get_snapshot_service().capture_snapshot(db)
            logger.info(f"Snapshot {snapshot.date.isoformat()}: {snapshot.total_value:.2f} EUR")
    finally:
        db.close()

    return 1 if result.failed else 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(main())
