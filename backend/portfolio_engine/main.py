# backend/portfolio_engine/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_engine.config import settings
from portfolio_engine.database import get_db
from portfolio_engine.dependencies import get_pricing_subsystem, shutdown_services
from portfolio_engine.middleware import (
    CorrelationIdMiddleware,
    RATE_LIMIT_HEALTH,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from portfolio_engine.routers import (
    categories_router,
    charts_router,
    holdings_router,
    transactions_router,
    valuation_router,
)
from portfolio_engine.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_engine.services.exceptions import (
    CategoryNotFoundError,
    DataUnavailableError,
    DuplicateNameError,
    InvalidColorError,
    MarketDataError,
    NotFoundError,
    PricingError,
    ServiceError,
    SubcategoryNotFoundError,
    UpstreamTimeoutError,
    ValidationError,
)
from portfolio_engine.services.pricing.subsystem import YahooPricingSubsystem
from portfolio_engine.utils import setup_logging
from portfolio_engine.utils.context import get_correlation_id

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} ({settings.environment})")
    yield
    shutdown_services()
    logger.info("Pricing workers stopped")


# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Holdings reconstruction, portfolio valuation and allocation charts",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Outermost, so every log line of the request (and 429s) carries the ID
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Services raise domain exceptions only; they become HTTP responses here.
# Starlette picks the handler registered for the most specific class in the
# exception's MRO, so subclasses below override their base handlers.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


def _error_response(
        status_code: int,
        exc: Exception,
        details: dict | None = None,
        headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=details,
            correlation_id=get_correlation_id(),
        ).model_dump(),
        headers=headers,
    )


@app.exception_handler(InvalidColorError)
async def invalid_color_handler(request: Request, exc: InvalidColorError) -> JSONResponse:
    """Handle colors outside the chart palette (400)."""
    logger.warning(f"Invalid color: {exc.color}")
    return _error_response(400, exc, details={"color": exc.color, "available": exc.available})


@app.exception_handler(DuplicateNameError)
async def duplicate_name_handler(request: Request, exc: DuplicateNameError) -> JSONResponse:
    """Handle category/subcategory name clashes (409)."""
    logger.warning(f"Duplicate name: {exc.name}")
    return _error_response(409, exc, details={"name": exc.name, "parent": exc.parent_name})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(400, exc, details={"field": exc.field} if exc.field else None)


@app.exception_handler(CategoryNotFoundError)
async def category_not_found_handler(request: Request, exc: CategoryNotFoundError) -> JSONResponse:
    """Handle unknown categories (404)."""
    logger.warning(f"Category not found: {exc.category_name}")
    return _error_response(404, exc, details={"category": exc.category_name})


@app.exception_handler(SubcategoryNotFoundError)
async def subcategory_not_found_handler(
        request: Request, exc: SubcategoryNotFoundError
) -> JSONResponse:
    """Handle unknown subcategories (404)."""
    logger.warning(f"Subcategory not found: {exc.category_name}/{exc.subcategory_name}")
    return _error_response(
        404, exc, details={"category": exc.category_name, "subcategory": exc.subcategory_name}
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle any other missing resource (404)."""
    logger.warning(f"Not found: {exc}")
    return _error_response(
        404, exc, details={"resource_type": exc.resource_type, "resource_id": str(exc.resource_id)}
    )


@app.exception_handler(DataUnavailableError)
async def data_unavailable_handler(request: Request, exc: DataUnavailableError) -> JSONResponse:
    """Handle a required price that is not in the store (503)."""
    logger.warning(f"Price data unavailable: {exc}")
    return _error_response(503, exc, details={"symbol": exc.symbol})


@app.exception_handler(UpstreamTimeoutError)
async def upstream_timeout_handler(request: Request, exc: UpstreamTimeoutError) -> JSONResponse:
    """Handle an exhausted refresh poll surfaced as an error (504)."""
    logger.warning(f"Price refresh timed out: {exc}")
    return _error_response(
        504, exc, details={"missing": exc.missing, "attempts": exc.attempts}
    )


@app.exception_handler(PricingError)
async def pricing_error_handler(request: Request, exc: PricingError) -> JSONResponse:
    logger.error(f"Pricing error: {exc}")
    return _error_response(503, exc)


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    """Handle market data provider errors (502)."""
    logger.error(f"Market data error: {exc}")
    return _error_response(502, exc, details={"provider": exc.provider} if exc.provider else None)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return _error_response(500, exc)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep HTTPExceptions in the ErrorDetail shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error="HTTPException",
            message=str(exc.detail),
            correlation_id=get_correlation_id(),
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
        request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle malformed request bodies and query parameters (422)."""
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Request validation failed: {len(details)} error(s)")
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            details=details,
            correlation_id=get_correlation_id(),
        ).model_dump(),
    )


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(holdings_router)
app.include_router(transactions_router)
app.include_router(valuation_router)
app.include_router(charts_router)
app.include_router(categories_router)


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
def root():
    return {"name": settings.app_name, "environment": settings.environment}


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Dependency health check.

    - database (critical): 503 when unreachable
    - pricing (non-critical): which subsystem is publishing refreshes
    """
    checks = {}
    status_code = 200
    overall_status = "healthy"

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {"status": "healthy", "critical": True}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = {"status": "unhealthy", "critical": True, "error": str(e)}
        overall_status = "unhealthy"
        status_code = 503

    subsystem = get_pricing_subsystem()
    checks["pricing"] = {
        "status": "healthy" if isinstance(subsystem, YahooPricingSubsystem) else "disabled",
        "critical": False,
        "subsystem": type(subsystem).__name__,
    }

    response_data = {"status": overall_status, "checks": checks}
    if status_code != 200:
        return JSONResponse(status_code=status_code, content=response_data)
    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Liveness probe; never checks dependencies."""
    return {"status": "alive"}
