# backend/portfolio_tracker/services/constants.py
"""
Centralized constants for the portfolio tracker services.

Values that operators are expected to tune (cache TTL, batch size, default
FX rates, snapshot secret) live in config.Settings instead.

Usage:
    from portfolio_tracker.services.constants import (
        SNAPSHOT_BUCKET_MINUTES,
        SHARE_PRECISION,
    )
"""

from decimal import Decimal


# =============================================================================
# CURRENCIES
# =============================================================================

EUR: str = "EUR"
USD: str = "USD"

# Provider symbol for the EUR/USD spot rate (quoted as USD per 1 EUR)
EUR_USD_SYMBOL: str = "EURUSD=X"


# =============================================================================
# SNAPSHOTS
# =============================================================================

# Snapshots are keyed by the start of their 15-minute bucket
SNAPSHOT_BUCKET_MINUTES: int = 15


# =============================================================================
# BENCHMARK BACKFILL
# =============================================================================

# Days to look back for an index close when backfilling a benchmark
# (covers weekends and market holidays)
BACKFILL_LOOKBACK_DAYS: int = 5


# =============================================================================
# MARKET DATA
# =============================================================================

# Maximum results returned by ticker search
SEARCH_MAX_RESULTS: int = 10

CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
CIRCUIT_BREAKER_RECOVERY_TIMEOUT: float = 60.0


# =============================================================================
# PRECISION
# =============================================================================

# Matches Numeric(18, 8) columns
SHARE_PRECISION: Decimal = Decimal("0.00000001")

ZERO: Decimal = Decimal("0")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# RATE LIMITING
# =============================================================================

# Default limit applied to every endpoint
RATE_LIMIT_DEFAULT: str = "100/minute"

# Transaction create/update/delete
RATE_LIMIT_WRITE: str = "30/minute"

# Snapshot trigger and benchmark backfill (hit the market data provider hard)
RATE_LIMIT_SNAPSHOT: str = "10/minute"

# Health checks (polled by load balancers)
RATE_LIMIT_HEALTH: str = "300/minute"
