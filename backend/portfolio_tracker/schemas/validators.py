# backend/portfolio_tracker/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

This module provides:
- Ticker validation and normalization
- Currency code normalization
"""

import re

# =============================================================================
# CONSTANTS
# =============================================================================

# Ticker: 1-32 chars, alphanumeric plus . - = and a leading ^ for indices
# (BRK.B, BTC-USD, EURUSD=X, ^GSPC)
TICKER_PATTERN = re.compile(r'^[\^]?[A-Z0-9][A-Z0-9.\-=]{0,31}$')
TICKER_MAX_LENGTH = 32

# Currency: ISO 4217 format (3 uppercase letters)
CURRENCY_PATTERN = re.compile(r'^[A-Z]{3}$')


# =============================================================================
# TICKER VALIDATION
# =============================================================================

def validate_ticker(value: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Args:
        value: Raw ticker input

    Returns:
        Normalized ticker (uppercase, trimmed)

    Raises:
        ValueError: If ticker format is invalid
    """
    if not value:
        raise ValueError("Ticker cannot be empty")

    normalized = value.strip().upper()
    if not normalized:
        raise ValueError("Ticker cannot be empty")

    if len(normalized) > TICKER_MAX_LENGTH:
        raise ValueError(f"Ticker too long (max {TICKER_MAX_LENGTH} characters)")

    if not TICKER_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid ticker format: '{value}'. "
            "Use letters, digits, '.', '-' or '=' (optionally starting with '^')"
        )

    return normalized


# =============================================================================
# CURRENCY VALIDATION
# =============================================================================

def normalize_currency(value: str) -> str:
    """
    Trim and uppercase a currency code, then check ISO 4217 shape.

    Raises:
        ValueError: If the result is not three letters
    """
    normalized = value.strip().upper()
    if not CURRENCY_PATTERN.match(normalized):
        raise ValueError(f"Invalid currency code: '{value}'. Expected 3 letters (e.g. EUR, USD)")
    return normalized
