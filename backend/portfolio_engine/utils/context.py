# backend/portfolio_engine/utils/context.py
"""
Request-scoped correlation id.

Stored in a ContextVar so it follows the request through sync handlers,
async handlers and log records. Background pricing workers copy the
caller's id with `bind_correlation_id` so their log lines can be traced
back to the chart request that published the refresh.

Usage:
    from portfolio_engine.utils.context import get_correlation_id

    correlation_id = get_correlation_id()
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the current correlation id, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation id (called by CorrelationIdMiddleware)."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Reset the correlation id at the end of a request."""
    _correlation_id_var.set(None)


def bind_correlation_id(correlation_id: str | None) -> None:
    """
    Adopt a correlation id captured on another thread.

    Args:
        correlation_id: Id captured with get_correlation_id(); None is ignored
    """
    if correlation_id:
        _correlation_id_var.set(correlation_id)
