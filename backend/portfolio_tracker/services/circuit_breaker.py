# backend/portfolio_tracker/services/circuit_breaker.py
"""
Circuit breaker guarding calls to the market data provider.

After `failure_threshold` consecutive failures the breaker opens and rejects
calls immediately, so a hanging or failing upstream does not stall every
valuation request. After `recovery_timeout` seconds one trial call is let
through (HALF_OPEN); its outcome closes or re-opens the breaker.

States:
    CLOSED    - Normal operation
    OPEN      - Rejecting calls
    HALF_OPEN - Letting a limited number of trial calls through

Usage:
    breaker = CircuitBreaker(name="yahoo-finance", failure_threshold=5)

    try:
        with breaker:
            price = fetch_price()
    except CircuitBreakerOpen:
        price = None
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """
    Raised when a call is rejected because the breaker is open.

    Attributes:
        breaker_name: Name of the circuit breaker
        time_remaining: Seconds until a trial call will be allowed
    """

    def __init__(self, breaker_name: str, time_remaining: float) -> None:
        self.breaker_name = breaker_name
        self.time_remaining = time_remaining
        super().__init__(
            f"Circuit breaker '{breaker_name}' is open. "
            f"Retry in {time_remaining:.1f} seconds."
        )


@dataclass
class CircuitBreakerStats:
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0


@dataclass
class CircuitBreaker:
    """
    Thread-safe circuit breaker usable as a context manager or decorator.

    Attributes:
        name: Identifier used in logs and errors
        failure_threshold: Consecutive failures before opening
        recovery_timeout: Seconds to stay open before a trial call
        half_open_max_calls: Trial calls allowed while half-open
        excluded_exceptions: Exception types that do not count as failures
            (e.g. "symbol not found" is a data answer, not an outage)
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    half_open_max_calls: int = 1
    excluded_exceptions: tuple[type[Exception], ...] = field(default_factory=tuple)

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _consecutive_failures: int = field(default=0, init=False)
    _opened_at: float = field(default=0.0, init=False)
    _half_open_calls: int = field(default=0, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _stats: CircuitBreakerStats = field(default_factory=CircuitBreakerStats, init=False)

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if self.recovery_timeout < 0:
            raise ValueError("recovery_timeout cannot be negative")
        if self.half_open_max_calls < 1:
            raise ValueError("half_open_max_calls must be at least 1")

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._refresh_state()
            return self._state

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    @property
    def stats(self) -> CircuitBreakerStats:
        """Copy of the call counters."""
        with self._lock:
            return CircuitBreakerStats(**vars(self._stats))

    # Callers must hold the lock for the helpers below.

    def _refresh_state(self) -> None:
        if self._state == CircuitState.OPEN and self._seconds_until_retry() == 0:
            self._set_state(CircuitState.HALF_OPEN)

    def _seconds_until_retry(self) -> float:
        elapsed = time.monotonic() - self._opened_at
        return max(0.0, self.recovery_timeout - elapsed)

    def _set_state(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        if new_state == CircuitState.OPEN:
            self._opened_at = time.monotonic()
        elif new_state == CircuitState.HALF_OPEN:
            self._half_open_calls = 0
        else:
            self._consecutive_failures = 0
        logger.info(f"CircuitBreaker '{self.name}': {old_state.value} -> {new_state.value}")

    def _on_success(self) -> None:
        self._stats.successful_calls += 1
        self._consecutive_failures = 0
        if self._state == CircuitState.HALF_OPEN:
            self._set_state(CircuitState.CLOSED)

    def _on_failure(self) -> None:
        self._stats.failed_calls += 1
        if self._state == CircuitState.HALF_OPEN:
            self._set_state(CircuitState.OPEN)
            return
        self._consecutive_failures += 1
        if self._state == CircuitState.CLOSED and self._consecutive_failures >= self.failure_threshold:
            logger.warning(
                f"CircuitBreaker '{self.name}' opening after "
                f"{self._consecutive_failures} consecutive failures"
            )
            self._set_state(CircuitState.OPEN)

    def __enter__(self) -> "CircuitBreaker":
        with self._lock:
            self._stats.total_calls += 1
            self._refresh_state()

            allowed = self._state == CircuitState.CLOSED
            if self._state == CircuitState.HALF_OPEN and self._half_open_calls < self.half_open_max_calls:
                self._half_open_calls += 1
                allowed = True

            if not allowed:
                self._stats.rejected_calls += 1
                raise CircuitBreakerOpen(self.name, self._seconds_until_retry())
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> bool:
        with self._lock:
            if exc_val is None or isinstance(exc_val, self.excluded_exceptions):
                self._on_success()
            else:
                self._on_failure()
        return False

    def __call__(self, func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with self:
                return func(*args, **kwargs)
        return wrapper

    def reset(self) -> None:
        """Force the breaker back to CLOSED."""
        with self._lock:
            self._set_state(CircuitState.CLOSED)
