"""
FastAPI Application Entry Point
===============================

Main FastAPI application with health check, middleware,
and lifecycle management.
"""

import time
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncGenerator
from uuid import uuid4

import redis.asyncio as aioredis
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from pricecompare import __version__
from pricecompare.config import configure_logging, get_external_api_settings, get_settings
from pricecompare.db import dispose_engine, get_session_maker
from pricecompare.errors import ListFetchError, PriceCompareError
from pricecompare.services.external import (
    KrogerClient,
    OpenFoodFactsClient,
    SearchCache,
    WalmartClient,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Handles startup and shutdown of:
    - Redis connection (search cache)
    - External API clients
    - Database connection pool
    """
    settings = get_settings()
    api_settings = get_external_api_settings()
    logger.info(
        "pricecompare_starting",
        version=__version__,
        environment=settings.environment,
        port=settings.api_port,
    )

    cache = None
    app.state.redis = None
    try:
        redis_client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        await redis_client.ping()
        app.state.redis = redis_client
        cache = SearchCache(redis_client, ttl_seconds=api_settings.search_cache_ttl_seconds)
        logger.info("redis_connected")
    except Exception as e:
        # Search results are simply not cached without Redis
        logger.error("redis_connection_failed", error=str(e), error_type=type(e).__name__)

    async with AsyncExitStack() as stack:
        app.state.kroger_client = await stack.enter_async_context(
            KrogerClient(api_settings)
        )
        app.state.walmart_client = await stack.enter_async_context(
            WalmartClient(api_settings, cache=cache)
        )
        app.state.openfoodfacts_client = await stack.enter_async_context(
            OpenFoodFactsClient(api_settings)
        )
        logger.info(
            "external_apis_ready",
            kroger_configured=app.state.kroger_client.is_configured(),
            walmart_configured=app.state.walmart_client.is_configured(),
        )

        yield

    logger.info("pricecompare_shutting_down")

    try:
        await dispose_engine()
    except Exception as e:
        logger.error("database_dispose_failed", error=str(e), error_type=type(e).__name__)

    if app.state.redis is not None:
        try:
            await app.state.redis.aclose()
        except Exception as e:
            logger.error("redis_close_failed", error=str(e), error_type=type(e).__name__)


def create_app() -> FastAPI:
    """
    FastAPI application factory.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=not settings.is_development)

    app = FastAPI(
        title="PriceCompare API",
        description=(
            "Grocery product matching against a local catalog and price "
            "aggregation across local and external sources."
        ),
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Request Logging Middleware
    # -------------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        """Log requests with timing; adds X-Request-ID and X-Process-Time headers."""
        request_id = str(uuid4())
        start_time = time.perf_counter()

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            logger.info(
                "request_received",
                method=request.method,
                path=str(request.url.path),
                query=str(request.query_params) if request.query_params else None,
            )

            response = await call_next(request)

            process_time = time.perf_counter() - start_time
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.4f}"

            logger.info(
                "request_completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                duration_ms=round(process_time * 1000, 2),
            )
            return response
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(PriceCompareError)
    async def price_compare_error_handler(
        request: Request, exc: PriceCompareError
    ) -> JSONResponse:
        """Handle application-specific errors."""
        status_code = (
            status.HTTP_502_BAD_GATEWAY
            if isinstance(exc, ListFetchError)
            else status.HTTP_400_BAD_REQUEST
        )
        logger.error(
            "application_error",
            error_type=type(exc).__name__,
            message=exc.message,
            details=exc.details,
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "error": type(exc).__name__,
                "message": exc.message,
                "details": exc.details,
            },
        )

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check endpoint",
        response_model=dict[str, Any],
    )
    async def health_check(request: Request) -> dict[str, Any]:
        """Report service status with database and Redis checks."""
        health_status: dict[str, Any] = {
            "status": "healthy",
            "version": __version__,
            "service": "pricecompare",
            "checks": {},
        }

        try:
            async with get_session_maker()() as session:
                await session.execute(text("SELECT 1"))
            health_status["checks"]["database"] = {"status": "healthy"}
        except Exception as e:
            health_status["checks"]["database"] = {"status": "unhealthy", "error": str(e)}
            health_status["status"] = "degraded"

        redis_client = getattr(request.app.state, "redis", None)
        if redis_client is None:
            health_status["checks"]["redis"] = {"status": "not_initialized"}
            health_status["status"] = "degraded"
        else:
            try:
                start = time.perf_counter()
                await redis_client.ping()
                health_status["checks"]["redis"] = {
                    "status": "healthy",
                    "latency_ms": round((time.perf_counter() - start) * 1000, 2),
                }
            except Exception as e:
                health_status["checks"]["redis"] = {"status": "unhealthy", "error": str(e)}
                health_status["status"] = "degraded"

        return health_status

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    from pricecompare.api.routes import matching_router, prices_router, products_router

    app.include_router(matching_router, tags=["Matching"])
    app.include_router(prices_router, tags=["Prices"])
    app.include_router(products_router, tags=["Products"])

    return app


app = create_app()
