# backend/portfolio_engine/middleware/rate_limit.py
"""
Rate limiting for API protection (slowapi).

Chart and valuation endpoints publish price refreshes to Yahoo Finance and
may block on the refresh poll, so they get a tighter limit than plain reads.

Limits live in services/constants.py:
    RATE_LIMIT_DEFAULT  plain reads
    RATE_LIMIT_WRITE    ledger confirmation, category edits
    RATE_LIMIT_CHARTS   valuation and chart endpoints
    RATE_LIMIT_HEALTH   monitoring probes

Key by: Client IP address (X-Forwarded-For only from trusted proxies)
Storage: In-memory

Usage:
    @router.get("/charts/pie")
    @limiter.limit(RATE_LIMIT_CHARTS)
    def get_pie_chart(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from portfolio_engine.config import settings
from portfolio_engine.services.constants import (
    RATE_LIMIT_CHARTS,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_WRITE,
)
from portfolio_engine.utils.context import get_correlation_id

logger = logging.getLogger(__name__)

# Seconds advertised in Retry-After when slowapi does not expose a window
DEFAULT_RETRY_AFTER = 60


def _is_trusted_proxy(request: Request) -> bool:
    """True when X-Forwarded-For from this peer may be believed."""
    if settings.trust_proxy_headers:
        return True
    return get_remote_address(request) in settings.trusted_proxy_ips


def get_client_ip(request: Request) -> str:
    """
    Rate-limit key for a request.

    Forwarded headers are honoured only when the immediate peer is a
    trusted proxy; otherwise clients could spoof their own key.
    """
    if _is_trusted_proxy(request):
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    return get_remote_address(request)


# =============================================================================
# LIMITER INSTANCE
# =============================================================================

limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=not settings.is_test,
)


# =============================================================================
# RATE LIMIT EXCEEDED HANDLER
# =============================================================================

async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard ErrorDetail shape, with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(f"Rate limit exceeded for {get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": DEFAULT_RETRY_AFTER},
            "correlation_id": get_correlation_id(),
        },
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "get_client_ip",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_CHARTS",
    "RATE_LIMIT_HEALTH",
]
