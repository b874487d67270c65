# backend/portfolio_tracker/utils/context.py
"""
Request-scoped correlation ID.

Stored in a ContextVar so it follows the request through async handlers and
is visible to every log record emitted while the request is served.

Usage:
    from portfolio_tracker.utils.context import get_correlation_id

    correlation_id = get_correlation_id()  # None outside a request
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current request (called by middleware)."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)
