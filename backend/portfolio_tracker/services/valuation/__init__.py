# backend/portfolio_tracker/services/valuation/__init__.py
"""
Valuation Service Package.

Usage:
    from portfolio_tracker.services.valuation import ValuationService

    service = ValuationService(quote_service)
    result = service.get_portfolio_data(db)

Architecture:
    valuation/
    ├── __init__.py      # This file - package exports
    ├── types.py         # Internal data classes
    ├── calculators.py   # Ledger aggregation and P&L math
    ├── pricing.py       # Live → fallback → unpriced price chain
    └── service.py       # ValuationService (orchestrator)

Data Flow:
    Transactions → LedgerAggregator → HoldingPosition
    HoldingPosition + Quote → PriceResolver → PriceResult
    Position + Price → HoldingValuation → PortfolioValuation
"""

from portfolio_tracker.services.valuation.calculators import (
    LedgerAggregator,
    compute_total_eur,
    pnl_percent,
)
from portfolio_tracker.services.valuation.pricing import (
    DEFAULT_FALLBACK_PRICES_EUR,
    PriceResolver,
)
from portfolio_tracker.services.valuation.service import ValuationService
from portfolio_tracker.services.valuation.types import (
    PriceSource,
    HoldingPosition,
    PriceResult,
    HoldingValuation,
    PortfolioSummary,
    PortfolioValuation,
)

__all__ = [
    # Main service
    "ValuationService",

    # Data types
    "PriceSource",
    "HoldingPosition",
    "PriceResult",
    "HoldingValuation",
    "PortfolioSummary",
    "PortfolioValuation",

    # Calculators / pricing
    "LedgerAggregator",
    "compute_total_eur",
    "pnl_percent",
    "PriceResolver",
    "DEFAULT_FALLBACK_PRICES_EUR",
]
