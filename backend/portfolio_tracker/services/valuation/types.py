# backend/portfolio_tracker/services/valuation/types.py
"""
Internal data types for the Valuation Service.

These dataclasses are used internally by the valuation calculators.
They are NOT Pydantic schemas - those are defined in
portfolio_tracker/schemas/portfolio.py for API serialization.

Design Principles:
- Use Decimal for ALL financial values (never float)
- Every amount is in the accounting currency (EUR)
- A holding without a price is explicit (PriceSource.UNPRICED) and its
  value fields are None, never a made-up number

Type Hierarchy:
    HoldingPosition     - Aggregated ledger data for one asset
    PriceResult         - Resolved EUR price and where it came from
    HoldingValuation    - Complete valuation for one holding
    PortfolioSummary    - Totals over priced holdings
    PortfolioValuation  - Holdings + summary
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from portfolio_tracker.services.constants import SHARE_PRECISION, ZERO

if TYPE_CHECKING:
    from portfolio_tracker.models import Asset


class PriceSource(str, enum.Enum):
    LIVE = "LIVE"
    FALLBACK = "FALLBACK"
    UNPRICED = "UNPRICED"


# =============================================================================
# POSITION
# =============================================================================

@dataclass
class HoldingPosition:
    """
    Aggregated position for a single asset.

    Attributes:
        asset: Asset the transactions belong to
        quantity: Units currently held (bought - sold - withdrawn)
        total_buy_quantity: Units ever bought
        total_buy_cost_eur: Sum of total_eur over BUY transactions (fees included)
        total_sell_quantity: Units ever sold or withdrawn

    Note:
        SELL and WITHDRAW only reduce quantity; the average purchase price
        (PRU) depends on BUY transactions alone.
    """

    asset: Asset
    quantity: Decimal
    total_buy_quantity: Decimal
    total_buy_cost_eur: Decimal
    total_sell_quantity: Decimal

    @property
    def has_position(self) -> bool:
        return self.quantity > ZERO

    @property
    def pru(self) -> Decimal:
        """Weighted average purchase price in EUR, 0 if nothing was ever bought."""
        if self.total_buy_quantity == ZERO:
            return ZERO
        return (self.total_buy_cost_eur / self.total_buy_quantity).quantize(SHARE_PRECISION)

    @property
    def invested(self) -> Decimal:
        """Cost of the units still held, at the unrounded average purchase price."""
        if self.total_buy_quantity == ZERO:
            return ZERO
        return self.quantity * self.total_buy_cost_eur / self.total_buy_quantity


# =============================================================================
# PRICING
# =============================================================================

@dataclass(frozen=True)
class PriceResult:
    price: Decimal | None
    source: PriceSource

    @property
    def is_priced(self) -> bool:
        return self.source != PriceSource.UNPRICED


# =============================================================================
# VALUATION RESULTS
# =============================================================================

@dataclass
class HoldingValuation:
    """
    Valuation of one open position.

    `current_price`, `current_value`, `pnl` and `pnl_percent` are None when
    the holding could not be priced (price_source == UNPRICED).
    """

    asset_id: int
    ticker: str
    name: str
    asset_type: str
    quantity: Decimal
    pru: Decimal
    invested: Decimal
    price_source: PriceSource
    current_price: Decimal | None = None
    current_value: Decimal | None = None
    pnl: Decimal | None = None
    pnl_percent: Decimal | None = None

    @property
    def is_priced(self) -> bool:
        return self.price_source != PriceSource.UNPRICED


@dataclass
class PortfolioSummary:
    """
    Totals over priced holdings.

    Unpriced holdings are excluded from every total; their tickers are
    listed so the gap is visible to the caller.
    """

    total_value: Decimal
    total_invested: Decimal
    total_pnl: Decimal
    total_pnl_percent: Decimal
    unpriced_tickers: list[str] = field(default_factory=list)

    @property
    def has_complete_data(self) -> bool:
        return not self.unpriced_tickers


@dataclass
class PortfolioValuation:
    holdings: list[HoldingValuation]
    summary: PortfolioSummary
