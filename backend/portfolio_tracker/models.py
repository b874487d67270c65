# backend/portfolio_tracker/models.py
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Enum, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionType(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"
    WITHDRAW = "WITHDRAW"  # Moved out of the portfolio (e.g. to a cold wallet), reduces quantity like a SELL


class AssetType(str, enum.Enum):
    STOCK = "STOCK"
    ETF = "ETF"
    CRYPTO = "CRYPTO"


class Asset(Base):
    """
    An instrument held in the portfolio.

    Identified by its upper-cased ticker. Assets are created lazily by the first
    transaction that references them and removed when their last transaction
    is deleted.
    """
    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    ticker: Mapped[str] = mapped_column(String(32), unique=True, index=True)  # e.g. "BTC", "AAPL"
    name: Mapped[str] = mapped_column(String)
    asset_type: Mapped[AssetType] = mapped_column(Enum(AssetType), default=AssetType.STOCK)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="asset",
        cascade="all, delete-orphan",
        order_by="Transaction.date",
    )


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        # Ledger aggregation reads one asset's history in date order
        Index('ix_transaction_asset_date', 'asset_id', 'date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    asset_id: Mapped[int] = mapped_column(ForeignKey("assets.id", ondelete="CASCADE"), index=True)
    transaction_type: Mapped[TransactionType] = mapped_column(Enum(TransactionType))
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    # Numeric(18, 8) keeps 8 decimal places for crypto quantities
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    fees: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))

    # EUR per unit of `currency` at entry time. Recorded once, never recomputed from market data.
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(1))

    # (quantity * unit_price + fees) converted to the accounting currency
    total_eur: Mapped[Decimal] = mapped_column(Numeric(18, 8))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    asset: Mapped["Asset"] = relationship(back_populates="transactions")
    benchmark: Mapped["TransactionBenchmark | None"] = relationship(
        back_populates="transaction",
        uselist=False,
        cascade="all, delete-orphan",
    )


class TransactionBenchmark(Base):
    """
    Index prices observed when a BUY transaction was recorded.

    Written once and never updated: it is the historical fact the theoretical
    benchmark units are derived from. Editing the transaction afterwards does
    not refresh it.
    """
    __tablename__ = "transaction_benchmarks"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"), unique=True, index=True
    )
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    transaction: Mapped["Transaction"] = relationship(back_populates="benchmark")
    prices: Mapped[list["BenchmarkPrice"]] = relationship(
        back_populates="benchmark",
        cascade="all, delete-orphan",
    )

    def price_map(self) -> dict[str, Decimal]:
        """Recorded EUR price keyed by index key."""
        return {p.index_key: p.price for p in self.prices}


class BenchmarkPrice(Base):
    __tablename__ = "benchmark_prices"
    __table_args__ = (
        UniqueConstraint('benchmark_id', 'index_key', name='uq_benchmark_price_index'),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    benchmark_id: Mapped[int] = mapped_column(
        ForeignKey("transaction_benchmarks.id", ondelete="CASCADE"), index=True
    )
    index_key: Mapped[str] = mapped_column(String(32))  # e.g. "msci_world"
    price: Mapped[Decimal] = mapped_column(Numeric(18, 8))  # EUR, 0 when unavailable

    benchmark: Mapped["TransactionBenchmark"] = relationship(back_populates="prices")


class PortfolioSnapshot(Base):
    """
    Portfolio value and theoretical benchmark holdings for one 15-minute bucket.

    `date` is the bucket start and is unique: writing the same bucket twice
    overwrites the earlier values.
    """
    __tablename__ = "portfolio_snapshots"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), unique=True, index=True)
    total_value: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    total_invested: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    index_values: Mapped[list["SnapshotIndexValue"]] = relationship(
        back_populates="snapshot",
        cascade="all, delete-orphan",
    )


class SnapshotIndexValue(Base):
    """Cumulative theoretical units of one index and its price at snapshot time."""
    __tablename__ = "snapshot_index_values"
    __table_args__ = (
        UniqueConstraint('snapshot_id', 'index_key', name='uq_snapshot_index'),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    snapshot_id: Mapped[int] = mapped_column(
        ForeignKey("portfolio_snapshots.id", ondelete="CASCADE"), index=True
    )
    index_key: Mapped[str] = mapped_column(String(32))
    price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    units: Mapped[Decimal] = mapped_column(Numeric(18, 8))

    snapshot: Mapped["PortfolioSnapshot"] = relationship(back_populates="index_values")
