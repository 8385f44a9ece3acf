# backend/portfolio_engine/middleware/correlation.py
"""
Correlation ID middleware for request tracing.

Every request runs under one correlation ID. It is stored in a ContextVar
(see utils/context.py), echoed back in the response headers, and handed to
pricing worker threads so background price fetches log under the request
that published them.

Correlation ID Sources (in order of precedence):
1. X-Correlation-ID header (from client or upstream service)
2. X-Request-ID header (alternative header name)
3. Generated UUID if neither header is present or the value is unusable

Client-supplied IDs are capped at MAX_CORRELATION_ID_LENGTH characters and
restricted to [A-Za-z0-9._-]; anything else is replaced by a fresh UUID so
log lines cannot be forged through the header.

Usage:
    app.add_middleware(CorrelationIdMiddleware)

    curl -H "X-Correlation-ID: my-trace-123" \\
        "http://localhost:8000/accounts/<id>/valuation?currency=USD"
    # X-Correlation-ID: my-trace-123
"""

import logging
import re
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from portfolio_engine.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

MAX_CORRELATION_ID_LENGTH = 128
_SAFE_ID = re.compile(r"^[A-Za-z0-9._\-]+$")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation ID to the request context and the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = resolve_correlation_id(request)
        set_correlation_id(correlation_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()


def resolve_correlation_id(request: Request) -> str:
    """
    Pick the correlation ID for a request.

    Returns:
        The first usable header value, or a new UUID4 string
    """
    for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
        candidate = request.headers.get(header)
        if not candidate:
            continue
        candidate = candidate.strip()
        if len(candidate) <= MAX_CORRELATION_ID_LENGTH and _SAFE_ID.match(candidate):
            return candidate
        logger.debug(f"Ignoring malformed {header} header")

    return str(uuid.uuid4())
