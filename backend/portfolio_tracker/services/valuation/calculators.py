# backend/portfolio_tracker/services/valuation/calculators.py
"""
Ledger and P&L calculators.

- LedgerAggregator: Folds an asset's transactions into a HoldingPosition
- compute_total_eur: EUR amount of a single transaction at its entry rate
- pnl_percent: Guarded percentage P&L

All functions are pure: no database access, no market data.

Usage:
    aggregator = LedgerAggregator()
    positions = aggregator.holdings(assets)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from portfolio_tracker.models import Asset, Transaction, TransactionType
from portfolio_tracker.services.constants import EUR, HUNDRED, ZERO
from portfolio_tracker.services.valuation.types import HoldingPosition

logger = logging.getLogger(__name__)


# =============================================================================
# LEDGER AGGREGATOR
# =============================================================================

class LedgerAggregator:
    """
    Aggregates transactions into positions.

    Quantity = Σ BUY − Σ (SELL + WITHDRAW)
    PRU      = Σ BUY total_eur ÷ Σ BUY quantity

    Note:
        Only `holdings()` filters closed positions. `aggregate()` returns the
        raw position even when quantity is zero or negative.
    """

    def aggregate(self, asset: Asset, transactions: Iterable[Transaction]) -> HoldingPosition:
        total_buy_quantity = ZERO
        total_buy_cost_eur = ZERO
        total_sell_quantity = ZERO

        for txn in transactions:
            if txn.transaction_type == TransactionType.BUY:
                total_buy_quantity += txn.quantity
                total_buy_cost_eur += txn.total_eur
            else:
                # SELL and WITHDRAW both take units out of the portfolio
                total_sell_quantity += txn.quantity

        return HoldingPosition(
            asset=asset,
            quantity=total_buy_quantity - total_sell_quantity,
            total_buy_quantity=total_buy_quantity,
            total_buy_cost_eur=total_buy_cost_eur,
            total_sell_quantity=total_sell_quantity,
        )

    def holdings(self, assets: Iterable[Asset]) -> list[HoldingPosition]:
        """
        Open positions for the given assets, using each asset's transactions.

        Assets whose net quantity is zero or negative are excluded. A negative
        quantity means more units left than were recorded as bought, which is
        logged as a data problem.
        """
        positions: list[HoldingPosition] = []

        for asset in assets:
            position = self.aggregate(asset, asset.transactions)
            if position.has_position:
                positions.append(position)
            elif position.quantity < ZERO:
                logger.warning(
                    f"{asset.ticker}: more units sold/withdrawn than bought "
                    f"(net quantity {position.quantity}), excluded from holdings"
                )

        return positions


# =============================================================================
# AMOUNTS
# =============================================================================

def compute_total_eur(
        quantity: Decimal,
        unit_price: Decimal,
        fees: Decimal,
        currency: str,
        exchange_rate: Decimal,
) -> Decimal:
    """
    EUR amount of a transaction.

    Fees are in the transaction currency and are added before conversion:
        total_eur = (quantity × unit_price + fees) × exchange_rate

    EUR transactions are never converted, whatever rate was supplied.

    Example:
        0.1 BTC @ 42000 USD, fees 10, rate 0.92 → (4200 + 10) × 0.92 = 3873.2
    """
    gross = quantity * unit_price + fees
    if currency.upper() == EUR:
        return gross
    return gross * exchange_rate


def pnl_percent(pnl: Decimal, invested: Decimal) -> Decimal:
    """pnl ÷ invested × 100, or 0 when nothing is invested."""
    if invested == ZERO:
        return ZERO
    return pnl / invested * HUNDRED
