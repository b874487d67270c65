# backend/portfolio_tracker/schemas/transactions.py
"""
Pydantic schemas for Transaction validation.

These schemas define:
- What data clients must send (Create)
- What data clients can update (Update)
- What data the API returns (Response)

Validation layers:
- Field constraints: type, length, numeric limits
- Field validators: normalization (uppercase, trim), logical checks
- Service: currency/rate consistency, existence checks

Everything is checked here or in the service BEFORE the database is touched.

IMPORTANT: All financial values use Decimal for precision.
Never use float for money!
"""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_tracker.models import AssetType, TransactionType
from portfolio_tracker.schemas.assets import AssetResponse
from portfolio_tracker.schemas.validators import validate_ticker, normalize_currency


def _not_in_future(v: datetime) -> datetime:
    if v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)

    current_time = datetime.now(timezone.utc)
    if v > current_time:
        raise ValueError(f"Transaction date cannot be in the future (sent: {v}, now: {current_time})")
    return v


# =============================================================================
# CREATE SCHEMA
# =============================================================================

class TransactionCreate(BaseModel):
    """
    Schema for recording a new transaction.

    The asset is looked up by ticker and created on first use, with `name`
    (default: the ticker) and `asset_type` (default: STOCK).

    `exchange_rate` is EUR per unit of `currency`. When omitted it defaults
    to 1 for EUR and to the configured USD rate for USD; any other currency
    must supply it.
    """

    ticker: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="Ticker as used by the user (e.g., 'BTC', 'AAPL')",
        examples=["BTC", "AAPL", "IWDA"]
    )

    name: str | None = Field(
        default=None,
        max_length=255,
        description="Display name, used only when the asset is created"
    )

    asset_type: AssetType | None = Field(
        default=None,
        description="Asset type, used only when the asset is created"
    )

    transaction_type: TransactionType = Field(
        ...,
        examples=[TransactionType.BUY, TransactionType.SELL, TransactionType.WITHDRAW]
    )

    date: datetime = Field(
        ...,
        description="Date and time when the trade was executed",
        examples=["2026-01-15T14:30:00Z"]
    )

    quantity: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Units traded (must be positive)",
        examples=["10", "0.1"]
    )

    unit_price: Decimal = Field(
        ...,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="Price per unit in `currency` (must be positive)",
        examples=["42000", "185.50"]
    )

    currency: str = Field(
        default="EUR",
        description="Currency of unit_price and fees (ISO 4217)",
        examples=["EUR", "USD"]
    )

    fees: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Fees in `currency` (0 or positive)"
    )

    exchange_rate: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8,
        description="EUR per 1 unit of `currency` at trade time",
        examples=["0.92"]
    )

    # =========================================================================
    # FIELD VALIDATORS (Normalization & Validation)
    # =========================================================================

    @field_validator('ticker')
    @classmethod
    def validate_and_normalize_ticker(cls, v: str) -> str:
        return validate_ticker(v)

    @field_validator('currency', mode='before')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return normalize_currency(v)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator('date')
    @classmethod
    def validate_date_not_in_future(cls, v: datetime) -> datetime:
        """Prevent recording transactions that haven't happened yet."""
        return _not_in_future(v)


# =============================================================================
# UPDATE SCHEMA
# =============================================================================

class TransactionUpdate(BaseModel):
    """
    Schema for updating an existing transaction.

    All fields are optional; only the fields sent are changed and total_eur
    is recomputed from the merged result.

    Note: the ticker CANNOT be changed. Delete the transaction and record a
    new one instead.
    """

    transaction_type: TransactionType | None = None

    date: datetime | None = Field(
        default=None,
        description="Corrected trade date"
    )

    quantity: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8
    )

    unit_price: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8
    )

    currency: str | None = None

    fees: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=18,
        decimal_places=8
    )

    exchange_rate: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=18,
        decimal_places=8
    )

    @field_validator('currency', mode='before')
    @classmethod
    def validate_currency(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return normalize_currency(v)

    @field_validator('date')
    @classmethod
    def validate_date_not_in_future(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return None
        return _not_in_future(v)


# =============================================================================
# RESPONSE SCHEMA
# =============================================================================

class TransactionResponse(BaseModel):
    """Transaction as stored, with its asset embedded."""

    id: int = Field(..., description="Unique identifier")
    asset_id: int
    transaction_type: TransactionType
    date: datetime
    quantity: Decimal
    unit_price: Decimal
    currency: str
    fees: Decimal
    exchange_rate: Decimal = Field(..., description="EUR per 1 unit of currency, frozen at entry")
    total_eur: Decimal = Field(..., description="(quantity × unit_price + fees) in EUR")
    created_at: datetime
    asset: AssetResponse = Field(..., description="Full asset details")

    model_config = ConfigDict(from_attributes=True)
