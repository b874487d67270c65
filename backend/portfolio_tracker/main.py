# backend/portfolio_tracker/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)

Run:
    uvicorn portfolio_tracker.main:app --reload
"""

import logging

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_tracker.config import settings
from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_market_data_provider
from portfolio_tracker.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from portfolio_tracker.routers import assets, benchmarks, portfolio, snapshots, transactions
from portfolio_tracker.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_tracker.services.exceptions import (
    ServiceError,
    ValidationError,
    NotFoundError,
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
    UnknownIndexError,
    CircuitBreakerOpen,
)
from portfolio_tracker.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Personal investment portfolio tracker with market benchmarks",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Order matters: last added = first executed
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Services raise domain exceptions; they become ErrorDetail responses here.
# Starlette picks the handler of the most specific class in the MRO, so the
# base-class handlers only catch what the specific ones do not.
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
        ).model_dump(),
        headers=headers,
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Missing transaction or asset (404)."""
    logger.warning(f"Not found: {exc}")
    return _error_response(
        404, exc,
        details={"resource_type": exc.resource_type, "resource_id": exc.resource_id},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Business-rule validation failures (400)."""
    logger.warning(f"Validation error: {exc}")
    return _error_response(400, exc, details={"field": exc.field} if exc.field else None)


@app.exception_handler(UnknownIndexError)
async def unknown_index_handler(request: Request, exc: UnknownIndexError) -> JSONResponse:
    """Unknown benchmark key (400)."""
    logger.warning(f"Unknown index requested: {exc.key}")
    return _error_response(
        400, exc,
        details={"key": exc.key, "valid_options": exc.valid_keys},
    )


@app.exception_handler(CircuitBreakerOpen)
async def circuit_breaker_handler(request: Request, exc: CircuitBreakerOpen) -> JSONResponse:
    """Circuit breaker open (503 with Retry-After)."""
    logger.warning(f"Circuit breaker open: {exc.breaker_name}")
    retry_after = int(exc.time_remaining) + 1
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="CircuitBreakerOpen",
            message=f"Service temporarily unavailable. The {exc.breaker_name} circuit breaker is open.",
            details={"breaker_name": exc.breaker_name, "retry_after": retry_after},
        ).model_dump(),
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(TickerNotFoundError)
async def ticker_not_found_handler(request: Request, exc: TickerNotFoundError) -> JSONResponse:
    logger.warning(f"Ticker not found on provider: {exc}")
    return _error_response(404, exc)


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(request: Request, exc: ProviderUnavailableError) -> JSONResponse:
    logger.error(f"Provider unavailable: {exc}")
    return _error_response(503, exc)


@app.exception_handler(RateLimitError)
async def provider_rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    logger.warning(f"Provider rate limit: {exc}")
    return _error_response(
        429, exc,
        details={"retry_after": exc.retry_after} if exc.retry_after else None,
    )


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    logger.error(f"Market data error: {exc}")
    return _error_response(500, exc)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error(f"Service error: {exc}")
    return _error_response(500, exc)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Re-shape FastAPI's {"detail": ...} into ErrorDetail."""
    error_types = {
        400: "BadRequestError",
        401: "UnauthorizedError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Schema validation failures (422) as a flat list of field errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(details=errors).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(transactions.router)  # /transactions/*
app.include_router(assets.router)  # /assets/*
app.include_router(portfolio.router)  # /portfolio/*
app.include_router(snapshots.router)  # /snapshots/
app.include_router(benchmarks.router)  # /benchmarks/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Health of the database (critical) and the market data circuit breaker
    (non-critical: prices fall back when Yahoo is down).

    - 200: healthy, or degraded when the breaker is open
    - 503: database unreachable
    """
    checks = {}
    overall_status = "healthy"

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {"status": "healthy", "critical": True}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = {"status": "unhealthy", "critical": True, "error": str(e)}
        overall_status = "unhealthy"

    breaker = getattr(get_market_data_provider(), "circuit_breaker", None)
    if breaker is None:
        checks["market_data"] = {"status": "unknown", "critical": False}
    else:
        stats = breaker.stats
        checks["market_data"] = {
            "status": "unhealthy" if breaker.is_open else "healthy",
            "critical": False,
            "circuit_breaker_state": breaker.state.value,
            "total_calls": stats.total_calls,
            "failed_calls": stats.failed_calls,
            "rejected_calls": stats.rejected_calls,
        }
        if breaker.is_open and overall_status == "healthy":
            overall_status = "degraded"

    response_data = {"status": overall_status, "checks": checks}
    if overall_status == "unhealthy":
        return JSONResponse(status_code=503, content=response_data)
    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Process is up. Never checks dependencies."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Ready to serve when the database answers."""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ready"}
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
