# backend/portfolio_engine/utils/__init__.py
"""
Cross-cutting utilities:
- logging: setup_logging() with correlation id support
- context: request-scoped correlation id
- date_utils: calendar-month arithmetic
"""

from portfolio_engine.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    bind_correlation_id,
)
from portfolio_engine.utils.logging import setup_logging

__all__ = [
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "bind_correlation_id",
]
