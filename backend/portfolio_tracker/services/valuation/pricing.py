# backend/portfolio_tracker/services/valuation/pricing.py
"""
Price resolution for open positions.

Chain, first hit wins:
    1. Live quote, converted to EUR (USD ÷ EURUSD, EUR as-is)
    2. Static fallback table (EUR)
    3. UNPRICED

Quotes in any other currency cannot be converted automatically and are
treated as missing.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType

from portfolio_tracker.services.market_data.base import Quote
from portfolio_tracker.services.quote_service import QuoteService
from portfolio_tracker.services.valuation.types import PriceResult, PriceSource

logger = logging.getLogger(__name__)


# Approximate EUR prices used when no live quote is available
DEFAULT_FALLBACK_PRICES_EUR: Mapping[str, Decimal] = MappingProxyType({
    "BTC": Decimal("65000"),
    "ETH": Decimal("3400"),
    "SOL": Decimal("140"),
    "AAPL": Decimal("185"),
    "MSFT": Decimal("420"),
    "GOOGL": Decimal("175"),
    "AMZN": Decimal("195"),
    "NVDA": Decimal("145"),
    "TSLA": Decimal("245"),
    "VOO": Decimal("480"),
    "VTI": Decimal("285"),
    "IWDA": Decimal("85"),
    "MSCIWLD": Decimal("85"),
})


class PriceResolver:
    """
    Resolves a EUR price for a ticker from a pre-fetched quote map.

    Args:
        quote_service: Used for EUR conversion
        fallback_prices: Ticker → EUR price used when no live quote exists
    """

    def __init__(
            self,
            quote_service: QuoteService,
            fallback_prices: Mapping[str, Decimal] = DEFAULT_FALLBACK_PRICES_EUR,
    ) -> None:
        self._quote_service = quote_service
        self._fallback_prices = fallback_prices

    def resolve(
            self,
            ticker: str,
            quote: Quote | None,
            eur_usd_rate: Decimal,
    ) -> PriceResult:
        if quote is not None:
            price_eur = self._quote_service.to_eur(quote.price, quote.currency, eur_usd_rate)
            if price_eur is not None:
                return PriceResult(price=price_eur, source=PriceSource.LIVE)
            logger.warning(
                f"{ticker}: live quote in unsupported currency {quote.currency}, ignoring"
            )

        fallback = self._fallback_prices.get(ticker.upper())
        if fallback is not None:
            logger.info(f"{ticker}: using fallback price {fallback} EUR")
            return PriceResult(price=fallback, source=PriceSource.FALLBACK)

        logger.warning(f"{ticker}: no price available, holding is unpriced")
        return PriceResult(price=None, source=PriceSource.UNPRICED)
