# tests/services/test_circuit_breaker.py
"""
Tests for the circuit breaker implementation.
"""

import time

import pytest

from portfolio_tracker.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerOpen,
    CircuitState,
)


class ProviderDown(Exception):
    pass


class NotFound(Exception):
    pass


def _fail(breaker: CircuitBreaker, times: int, error: type[Exception] = ProviderDown) -> None:
    for _ in range(times):
        with pytest.raises(error):
            with breaker:
                raise error("boom")


class TestCircuitBreakerInit:
    """Tests for circuit breaker initialization."""

    def test_default_values(self):
        breaker = CircuitBreaker(name="test")

        assert breaker.name == "test"
        assert breaker.failure_threshold == 5
        assert breaker.recovery_timeout == 60.0
        assert breaker.half_open_max_calls == 1
        assert breaker.state == CircuitState.CLOSED

    def test_invalid_failure_threshold(self):
        with pytest.raises(ValueError, match="failure_threshold must be at least 1"):
            CircuitBreaker(name="test", failure_threshold=0)

    def test_invalid_recovery_timeout(self):
        with pytest.raises(ValueError, match="recovery_timeout cannot be negative"):
            CircuitBreaker(name="test", recovery_timeout=-1)

    def test_invalid_half_open_max_calls(self):
        with pytest.raises(ValueError, match="half_open_max_calls must be at least 1"):
            CircuitBreaker(name="test", half_open_max_calls=0)


class TestCircuitBreakerClosedState:
    """Tests for circuit breaker in closed state."""

    def test_allows_calls_when_closed(self):
        breaker = CircuitBreaker(name="test", failure_threshold=3)
        call_count = 0

        for _ in range(10):
            with breaker:
                call_count += 1

        assert call_count == 10
        assert breaker.state == CircuitState.CLOSED
        assert breaker.stats.successful_calls == 10

    def test_opens_after_consecutive_failures(self):
        breaker = CircuitBreaker(name="test", failure_threshold=3)

        _fail(breaker, 3)

        assert breaker.state == CircuitState.OPEN
        assert breaker.is_open
        assert breaker.stats.failed_calls == 3

    def test_success_resets_failure_count(self):
        breaker = CircuitBreaker(name="test", failure_threshold=3)

        _fail(breaker, 2)
        with breaker:
            pass
        _fail(breaker, 2)

        assert breaker.state == CircuitState.CLOSED

    def test_excluded_exceptions_do_not_count(self):
        breaker = CircuitBreaker(name="test", failure_threshold=2, excluded_exceptions=(NotFound,))

        _fail(breaker, 5, NotFound)

        assert breaker.state == CircuitState.CLOSED
        assert breaker.stats.failed_calls == 0


class TestCircuitBreakerOpenState:
    """Tests for circuit breaker in open state."""

    def test_rejects_calls_when_open(self):
        breaker = CircuitBreaker(name="yahoo", failure_threshold=1, recovery_timeout=60)
        _fail(breaker, 1)

        with pytest.raises(CircuitBreakerOpen) as exc_info:
            with breaker:
                pass

        assert exc_info.value.breaker_name == "yahoo"
        assert 0 < exc_info.value.time_remaining <= 60
        assert breaker.stats.rejected_calls == 1

    def test_half_open_after_recovery_timeout(self):
        breaker = CircuitBreaker(name="test", failure_threshold=1, recovery_timeout=0.05)
        _fail(breaker, 1)

        time.sleep(0.1)

        assert breaker.state == CircuitState.HALF_OPEN

    def test_successful_trial_closes(self):
        breaker = CircuitBreaker(name="test", failure_threshold=1, recovery_timeout=0.05)
        _fail(breaker, 1)
        time.sleep(0.1)

        with breaker:
            pass

        assert breaker.state == CircuitState.CLOSED

    def test_failed_trial_reopens(self):
        breaker = CircuitBreaker(name="test", failure_threshold=1, recovery_timeout=0.05)
        _fail(breaker, 1)
        time.sleep(0.1)

        _fail(breaker, 1)

        assert breaker.state == CircuitState.OPEN


class TestCircuitBreakerDecorator:

    def test_decorator_counts_calls(self):
        breaker = CircuitBreaker(name="test", failure_threshold=2)

        @breaker
        def fetch(x):
            return x * 2

        assert fetch(21) == 42
        assert breaker.stats.total_calls == 1

    def test_reset_closes(self):
        breaker = CircuitBreaker(name="test", failure_threshold=1)
        _fail(breaker, 1)

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
