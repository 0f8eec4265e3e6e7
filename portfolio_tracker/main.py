# portfolio_tracker/main.py
"""
FastAPI application entry point.

Wires logging, middleware, the error taxonomy and the three routers
(portfolio, quotes, settings) into one app, plus health probes.

Run with:
    uvicorn portfolio_tracker.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_tracker.config import settings
from portfolio_tracker.database import get_db, init_database
from portfolio_tracker.dependencies import get_market_data_provider
from portfolio_tracker.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from portfolio_tracker.routers import (
    market_data_router,
    portfolio_router,
    settings_router,
)
from portfolio_tracker.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_tracker.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidPeriodError,
    NotFoundError,
    TickerNotFoundError,
    ProviderUnavailableError,
    RateLimitError,
    MarketDataError,
    CircuitBreakerOpen,
)
from portfolio_tracker.services.market_data.base import MarketDataProvider
from portfolio_tracker.services.valuation.types import Period
from portfolio_tracker.utils import setup_logging

logger = logging.getLogger(__name__)

# Before the app exists, so startup messages are formatted too
setup_logging()

# Retry-After for provider throttling that did not say how long to wait
PROVIDER_RETRY_AFTER = 60


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    logger.info(f"{settings.app_name} started (environment={settings.environment})")
    yield
    logger.info(f"{settings.app_name} shutting down")


app = FastAPI(
    title=settings.app_name,
    description="Stock portfolio tracker: purchase lots valued at live prices",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Last added runs first: correlation ID is bound before the limiter logs
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# ERROR RESPONSES
# =============================================================================
# Domain exceptions carry no HTTP knowledge; the status codes live here.
# Starlette dispatches on the most specific class, so InvalidPeriodError
# gets 400 even though it is a ValidationError, and TickerNotFoundError
# gets 404 ahead of the MarketDataError catch-all.
# =============================================================================

def _error_response(
        status_code: int,
        error: str,
        message: str,
        details: dict | None = None,
        retry_after: int | None = None,
) -> JSONResponse:
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(error=error, message=message, details=details).model_dump(),
        headers=headers,
    )


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(InvalidPeriodError)
async def invalid_period_handler(request: Request, exc: InvalidPeriodError) -> JSONResponse:
    logger.warning(f"Rejected history period {exc.period!r}")
    return _error_response(
        400,
        "InvalidPeriodError",
        str(exc),
        details={"period": exc.period, "valid_options": [p.value for p in Period]},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning(f"Validation failed: {exc}")
    return _error_response(
        422,
        "ValidationError",
        str(exc),
        details={"field": exc.field} if exc.field else None,
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Missing lot or unsupported setting key."""
    logger.warning(f"{exc.resource_type} {exc.resource_id} not found")
    return _error_response(
        404,
        type(exc).__name__,
        str(exc),
        details={"resource_type": exc.resource_type, "resource_id": exc.resource_id},
    )


@app.exception_handler(TickerNotFoundError)
async def ticker_not_found_handler(request: Request, exc: TickerNotFoundError) -> JSONResponse:
    logger.info(f"Unknown symbol {exc.ticker}")
    return _error_response(404, "TickerNotFoundError", str(exc), details={"ticker": exc.ticker})


@app.exception_handler(RateLimitError)
async def provider_rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """The quote provider, not this API, is throttling us."""
    retry_after = exc.retry_after or PROVIDER_RETRY_AFTER
    logger.warning(f"Quote provider throttled: {exc}")
    return _error_response(
        429,
        "RateLimitError",
        str(exc),
        details={"retry_after": retry_after},
        retry_after=retry_after,
    )


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(request: Request, exc: ProviderUnavailableError) -> JSONResponse:
    logger.error(f"Quote provider unavailable: {exc}")
    return _error_response(503, "ProviderUnavailableError", str(exc))


@app.exception_handler(CircuitBreakerOpen)
async def circuit_open_handler(request: Request, exc: CircuitBreakerOpen) -> JSONResponse:
    # Whole seconds, rounded up
    retry_after = int(exc.time_remaining) + 1
    logger.warning(f"Circuit '{exc.breaker_name}' open, rejecting request")
    return _error_response(
        503,
        "CircuitBreakerOpen",
        f"Quote provider temporarily disabled ({exc.breaker_name} circuit open)",
        details={"breaker_name": exc.breaker_name, "retry_after": retry_after},
        retry_after=retry_after,
    )


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    logger.error(f"Market data error: {exc}")
    return _error_response(503, "MarketDataError", str(exc))


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error(f"Service error: {exc}")
    return _error_response(500, "ServiceError", str(exc))


# Routing errors (unknown path, wrong method) in the same shape
HTTP_ERROR_NAMES = {
    400: "BadRequestError",
    404: "NotFoundError",
    405: "MethodNotAllowedError",
    422: "ValidationError",
    429: "RateLimitError",
    503: "ServiceUnavailableError",
}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=HTTP_ERROR_NAMES.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed body, path or query: one entry per offending field."""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(details=details).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected becomes a 500 without leaking internals."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return _error_response(500, "InternalServerError", "An unexpected error occurred")


# =============================================================================
# ROUTES
# =============================================================================

app.include_router(portfolio_router)  # /portfolio/*
app.include_router(market_data_router)  # /search, /stocks/*
app.include_router(settings_router)  # /settings/*


@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


def _database_ok(db: Session) -> tuple[bool, str | None]:
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database check failed: {e}")
        return False, str(e)
    return True, None


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(
        request: Request,
        db: Session = Depends(get_db),
        provider: MarketDataProvider = Depends(get_market_data_provider),
):
    """
    Database and quote provider status.

    - **200** `healthy`: both fine
    - **200** `degraded`: quote circuit open; lots and settings still work
    - **503** `unhealthy`: database unreachable
    """
    db_ok, db_error = _database_ok(db)
    breaker = provider.circuit_breaker

    checks = {
        "database": {"status": "healthy" if db_ok else "unhealthy", "critical": True},
        "quote_provider": {
            "status": "unhealthy" if breaker.is_open else "healthy",
            "critical": False,
            **breaker.status(),
        },
    }
    if db_error:
        checks["database"]["error"] = db_error

    if not db_ok:
        return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})

    return {"status": "degraded" if breaker.is_open else "healthy", "checks": checks}


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """200 whenever the process serves requests; checks nothing else."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """503 while the database is unreachable."""
    db_ok, _ = _database_ok(db)
    if not db_ok:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
    return {"status": "ready"}
