# backend/portfolio_engine/middleware/__init__.py
"""
Request middleware for the valuation API.

- correlation: stamps each request with an X-Correlation-ID that the log
  filter picks up
- rate_limit: slowapi limiter keyed by client IP, with per-route budgets
  (charts are priced on demand and share the write budget)

main.py registers both: the correlation middleware on the app, the
limiter on app.state.
"""

from portfolio_engine.middleware.correlation import CorrelationIdMiddleware
from portfolio_engine.middleware.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_WRITE,
    RATE_LIMIT_CHARTS,
    RATE_LIMIT_HEALTH,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_CHARTS",
    "RATE_LIMIT_HEALTH",
]
