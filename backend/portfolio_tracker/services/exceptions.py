# backend/portfolio_tracker/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
Exception handlers in main.py map them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   └── TransactionNotFoundError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   ├── TickerNotFoundError
    │   └── RateLimitError
    └── BenchmarkError
        └── UnknownIndexError

    CircuitBreakerOpen (from circuit_breaker module)
        - Raised when circuit breaker is open and blocking requests

MarketDataError subclasses never leave the QuoteService: missing prices are
degraded to fallbacks there. They are still mapped in main.py for provider
calls made outside it.
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails in the service layer.

    Field-level checks (positive quantity, known transaction type) are done by
    the Pydantic schemas; this covers rules that need more context, such as an
    unsupported currency entered without a conversion rate.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Transaction", "Asset")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: int) -> None:
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id} not found",
            resource_type="Transaction",
            resource_id=transaction_id,
        )


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable
    (network timeout, server error, maintenance).

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when the provider does not know a symbol.

    This is NOT a retryable error.
    """

    def __init__(self, symbol: str, provider: str) -> None:
        message = f"Symbol '{symbol}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.symbol = symbol


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


# =============================================================================
# BENCHMARK ERRORS
# =============================================================================


class BenchmarkError(ServiceError):
    """Base exception for benchmark ledger errors."""
    pass


class UnknownIndexError(BenchmarkError):
    """
    Raised when a market index key is not in the registry.

    Attributes:
        key: The requested index key
        valid_keys: Keys that are registered
    """

    def __init__(self, key: str, valid_keys: list[str]) -> None:
        self.key = key
        self.valid_keys = valid_keys
        super().__init__(
            f"Unknown market index: '{key}'. Valid options: {', '.join(valid_keys)}"
        )


# =============================================================================
# CIRCUIT BREAKER (re-exported for convenience)
# =============================================================================

from portfolio_tracker.services.circuit_breaker import CircuitBreakerOpen  # noqa: E402

__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "TransactionNotFoundError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    "BenchmarkError",
    "UnknownIndexError",
    "CircuitBreakerOpen",
]
