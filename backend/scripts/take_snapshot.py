#!/usr/bin/env python3
# backend/scripts/take_snapshot.py
"""
Capture one portfolio snapshot. Meant for cron when the HTTP trigger
endpoint is not reachable.

Usage:
    */15 * * * * python backend/scripts/take_snapshot.py
"""
import logging
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from portfolio_tracker.database import SessionLocal
from portfolio_tracker.dependencies import get_snapshot_service
from portfolio_tracker.utils import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    db = SessionLocal()
    try:
        snapshot = get_snapshot_service().capture_snapshot(db)
        logger.info(
            f"Snapshot {snapshot.date.isoformat()}: value={snapshot.total_value:.2f} EUR, "
            f"invested={snapshot.total_invested:.2f} EUR"
        )
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    main()
