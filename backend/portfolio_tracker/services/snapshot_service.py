# backend/portfolio_tracker/services/snapshot_service.py
"""
Snapshot Service - time series of portfolio value vs. benchmarks.

A snapshot stores, for one 15-minute bucket:
- the portfolio value and total invested
- per tracked index: its EUR price and the cumulative theoretical units

Benchmark values are NOT stored; they are computed on read as
units × price, so the stored facts stay independent of display logic.

Snapshots are triggered externally (cron → endpoint or take_snapshot.py).
Writing twice into the same bucket overwrites the earlier snapshot.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from portfolio_tracker.models import PortfolioSnapshot, SnapshotIndexValue
from portfolio_tracker.services.benchmark import BenchmarkService
from portfolio_tracker.services.constants import SNAPSHOT_BUCKET_MINUTES, ZERO
from portfolio_tracker.services.valuation import ValuationService

logger = logging.getLogger(__name__)


@dataclass
class HistoryPoint:
    """One snapshot as served to charts; `date` and `time` are UTC display strings."""

    timestamp: datetime
    date: str
    time: str
    portfolio_value: Decimal
    invested: Decimal
    benchmarks: dict[str, Decimal] = field(default_factory=dict)


def snapshot_bucket(moment: datetime) -> datetime:
    """
    Start of the 15-minute UTC bucket containing `moment`.

    Naive datetimes are taken to be UTC.

    Example:
        10:37:45.123 → 10:30:00.000
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)

    minute = moment.minute - moment.minute % SNAPSHOT_BUCKET_MINUTES
    return moment.replace(minute=minute, second=0, microsecond=0)


class SnapshotService:
    """
    Writes and reads portfolio snapshots.

    Attributes:
        _benchmark_service: Index prices and theoretical units
        _valuation_service: Current portfolio value (capture_snapshot only)
    """

    def __init__(
            self,
            benchmark_service: BenchmarkService,
            valuation_service: ValuationService,
    ) -> None:
        self._benchmark_service = benchmark_service
        self._valuation_service = valuation_service

    # =========================================================================
    # WRITE
    # =========================================================================

    def capture_snapshot(self, db: Session, now: datetime | None = None) -> PortfolioSnapshot:
        """Value the portfolio and store a snapshot of the result."""
        valuation = self._valuation_service.get_portfolio_data(db)
        return self.create_snapshot(db, valuation.summary.total_value, now=now)

    def create_snapshot(
            self,
            db: Session,
            portfolio_value: Decimal,
            now: datetime | None = None,
    ) -> PortfolioSnapshot:
        """
        Store (or overwrite) the snapshot of the current bucket.

        Args:
            db: Database session
            portfolio_value: Portfolio value in EUR
            now: Instant to bucket (default: current UTC time)

        Returns:
            The stored snapshot
        """
        bucket = snapshot_bucket(now or datetime.now(timezone.utc))
        prices = self._benchmark_service.fetch_index_prices()
        theoretical = self._benchmark_service.cumulative_theoretical_units(db)

        try:
            snapshot = self._upsert(db, bucket, portfolio_value, theoretical.total_invested, prices,
                                    theoretical.units)
            db.commit()
        except IntegrityError:
            # Another writer inserted the same bucket first
            db.rollback()
            logger.info(f"Snapshot {bucket.isoformat()} inserted concurrently, updating instead")
            snapshot = self._upsert(db, bucket, portfolio_value, theoretical.total_invested, prices,
                                    theoretical.units)
            db.commit()

        db.refresh(snapshot)
        logger.info(
            f"Snapshot {bucket.isoformat()}: value={portfolio_value:.2f} EUR, "
            f"invested={theoretical.total_invested:.2f} EUR"
        )
        return snapshot

    # =========================================================================
    # READ
    # =========================================================================

    def get_portfolio_history(self, db: Session) -> list[HistoryPoint]:
        """
        All snapshots in ascending order, with each benchmark valued as
        units × price at that snapshot.
        """
        snapshots = db.scalars(
            select(PortfolioSnapshot)
            .options(selectinload(PortfolioSnapshot.index_values))
            .order_by(PortfolioSnapshot.date)
        ).all()

        points = []
        for snapshot in snapshots:
            timestamp = snapshot.date
            if timestamp.tzinfo is None:
                # SQLite drops the offset; stored values are always UTC
                timestamp = timestamp.replace(tzinfo=timezone.utc)

            points.append(HistoryPoint(
                timestamp=timestamp,
                date=timestamp.strftime("%Y-%m-%d"),
                time=timestamp.strftime("%H:%M"),
                portfolio_value=snapshot.total_value,
                invested=snapshot.total_invested,
                benchmarks={iv.index_key: iv.units * iv.price for iv in snapshot.index_values},
            ))
        return points

    # =========================================================================
    # PRIVATE
    # =========================================================================

    @staticmethod
    def _upsert(
            db: Session,
            bucket: datetime,
            portfolio_value: Decimal,
            invested: Decimal,
            prices: dict[str, Decimal],
            units: dict[str, Decimal],
    ) -> PortfolioSnapshot:
        snapshot = db.scalar(
            select(PortfolioSnapshot)
            .where(PortfolioSnapshot.date == bucket)
            .options(selectinload(PortfolioSnapshot.index_values))
        )
        if snapshot is None:
            snapshot = PortfolioSnapshot(date=bucket)
            db.add(snapshot)

        snapshot.total_value = portfolio_value
        snapshot.total_invested = invested

        existing = {iv.index_key: iv for iv in snapshot.index_values}
        for key in prices.keys() | units.keys():
            row = existing.get(key)
            if row is None:
                row = SnapshotIndexValue(index_key=key)
                snapshot.index_values.append(row)
            row.price = prices.get(key, ZERO)
            row.units = units.get(key, ZERO)

        db.flush()
        return snapshot
