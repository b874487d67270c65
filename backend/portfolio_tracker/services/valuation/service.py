# backend/portfolio_tracker/services/valuation/service.py
"""
Valuation Service - current value and P&L of every open position.

Single entry point: get_portfolio_data(db)

Steps:
    1. Load assets with their transactions (one query + selectin load)
    2. Aggregate into open positions (LedgerAggregator)
    3. Batch-fetch live quotes and the EURUSD rate once
    4. Resolve a EUR price per position (live → fallback → unpriced)
    5. Compute value / invested / P&L and the summary over priced holdings

Valuation is read-only: it never writes to the database.

Usage:
    service = ValuationService(quote_service)
    result = service.get_portfolio_data(db)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from portfolio_tracker.models import Asset, AssetType
from portfolio_tracker.services.constants import ZERO
from portfolio_tracker.services.quote_service import QuoteService
from portfolio_tracker.services.valuation.calculators import LedgerAggregator, pnl_percent
from portfolio_tracker.services.valuation.pricing import (
    DEFAULT_FALLBACK_PRICES_EUR,
    PriceResolver,
)
from portfolio_tracker.services.valuation.types import (
    HoldingPosition,
    HoldingValuation,
    PortfolioSummary,
    PortfolioValuation,
    PriceResult,
)

logger = logging.getLogger(__name__)


class ValuationService:
    """
    Values the portfolio at current market prices.

    Attributes:
        _quote_service: Live quotes and FX
        _aggregator: Ledger → positions
        _resolver: Price chain (live, fallback, unpriced)
    """

    def __init__(
            self,
            quote_service: QuoteService,
            fallback_prices: Mapping[str, Decimal] = DEFAULT_FALLBACK_PRICES_EUR,
    ) -> None:
        self._quote_service = quote_service
        self._aggregator = LedgerAggregator()
        self._resolver = PriceResolver(quote_service, fallback_prices)

    def get_portfolio_data(self, db: Session) -> PortfolioValuation:
        """
        Value all open positions.

        Returns:
            PortfolioValuation with one HoldingValuation per open position
            (ticker order) and a summary over the priced ones
        """
        assets = db.scalars(
            select(Asset)
            .options(selectinload(Asset.transactions))
            .order_by(Asset.ticker)
        ).all()

        positions = self._aggregator.holdings(assets)
        if not positions:
            return PortfolioValuation(
                holdings=[],
                summary=PortfolioSummary(
                    total_value=ZERO,
                    total_invested=ZERO,
                    total_pnl=ZERO,
                    total_pnl_percent=ZERO,
                ),
            )

        quotes = self._quote_service.get_quote_details(
            (p.asset.ticker, p.asset.asset_type) for p in positions
        )
        eur_usd_rate = self._quote_service.get_eur_usd_rate()

        holdings: list[HoldingValuation] = []
        for position in positions:
            price = self._resolver.resolve(
                position.asset.ticker,
                quotes.get(position.asset.ticker.upper()),
                eur_usd_rate,
            )
            holdings.append(self._value_holding(position, price))

        summary = self._summarize(holdings)
        logger.info(
            f"Valued {len(holdings)} holdings: value={summary.total_value:.2f} EUR, "
            f"invested={summary.total_invested:.2f} EUR, "
            f"unpriced={len(summary.unpriced_tickers)}"
        )
        return PortfolioValuation(holdings=holdings, summary=summary)

    # =========================================================================
    # PRIVATE
    # =========================================================================

    def _value_holding(self, position: HoldingPosition, price: PriceResult) -> HoldingValuation:
        asset = position.asset
        invested = position.invested

        valuation = HoldingValuation(
            asset_id=asset.id,
            ticker=asset.ticker,
            name=asset.name,
            asset_type=AssetType(asset.asset_type).value,
            quantity=position.quantity,
            pru=position.pru,
            invested=invested,
            price_source=price.source,
        )
        if not price.is_priced:
            return valuation

        value = position.quantity * price.price
        pnl = value - invested
        valuation.current_price = price.price
        valuation.current_value = value
        valuation.pnl = pnl
        valuation.pnl_percent = pnl_percent(pnl, invested)
        return valuation

    @staticmethod
    def _summarize(holdings: list[HoldingValuation]) -> PortfolioSummary:
        total_value = ZERO
        total_invested = ZERO
        unpriced: list[str] = []

        for holding in holdings:
            if not holding.is_priced:
                unpriced.append(holding.ticker)
                continue
            total_value += holding.current_value
            total_invested += holding.invested

        total_pnl = total_value - total_invested
        return PortfolioSummary(
            total_value=total_value,
            total_invested=total_invested,
            total_pnl=total_pnl,
            total_pnl_percent=pnl_percent(total_pnl, total_invested),
            unpriced_tickers=unpriced,
        )
