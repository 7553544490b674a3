"""
Main FastAPI application entry point.

Uses Application Factory Pattern.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from tresorier.config.settings import Settings, get_settings
from tresorier.di import get_container, initialize_container, shutdown_container
from tresorier.domain.exceptions import TresorierException
from tresorier.infrastructure.cache.redis_balance_cache import RedisBalanceCache
from tresorier.infrastructure.gateways.razorpay_payout_gateway import (
    RazorpayPayoutGateway,
)
from tresorier.infrastructure.monitoring import get_logger, setup_logging
from tresorier.infrastructure.monitoring.metrics import withdrawals_pending
from tresorier.presentation.api.middleware import (
    tresorier_exception_handler,
    unhandled_exception_handler,
)
from tresorier.presentation.api.middleware.metrics_middleware import (
    MetricsMiddleware,
)
from tresorier.presentation.api.middleware.request_id_middleware import (
    RequestIDMiddleware,
)
from tresorier.presentation.api.routes import (
    admin,
    bank_accounts,
    internal,
    verification,
    wallet,
    webhooks,
    withdrawals,
)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory - creates and configures FastAPI app.

    Args:
        settings: Optional Settings instance (for testing)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()

    # Structured logging (JSON only in production)
    json_logs = settings.ENV == "production"
    setup_logging(level=settings.LOG_LEVEL, json_logs=json_logs)
    logger = get_logger(__name__)

    logger.info(f"Creating Tresorier application (ENV={settings.ENV})")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting Tresorier application...")
        container = await initialize_container()

        # Seed the pending gauge so it survives restarts
        async with container.database.session() as session:
            uow = container.get_unit_of_work(session)
            withdrawals_pending.set(await uow.ledger.count_pending_withdrawals())

        logger.info("Tresorier application started successfully")

        yield

        logger.info("Shutting down Tresorier application...")
        await shutdown_container()
        logger.info("Tresorier application shutdown complete")

    app = FastAPI(
        title="Tresorier API",
        description="Wallet, earnings, bank verification and payouts",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    # Middleware chain (last added runs first)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        GZipMiddleware,
        minimum_size=1000,
        compresslevel=6,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(TresorierException, tresorier_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Register routes
    app.include_router(wallet.router, prefix="/api")
    app.include_router(bank_accounts.router, prefix="/api")
    app.include_router(verification.router, prefix="/api")
    app.include_router(withdrawals.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")
    app.include_router(webhooks.router, prefix="/api")
    app.include_router(internal.router, prefix="/api")

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint."""
        return {
            "service": "Tresorier",
            "status": "running",
            "version": settings.APP_VERSION,
            "description": "Wallet and payout service",
        }

    @app.get("/health", tags=["Health"])
    async def health_check(response: Response):
        """
        Comprehensive health check endpoint.

        Returns detailed status of all components. Answers 503 when the
        database is unreachable.
        """
        container = get_container()

        db_healthy = await container.database.health_check()

        cache = container.balance_cache
        if isinstance(cache, RedisBalanceCache):
            cache_status = "healthy" if await cache.ping() else "unavailable"
            cache_info = {"type": "redis", "status": cache_status}
        else:
            cache_info = {"type": "memory", "status": "healthy"}

        gateway = container.payout_gateway
        if isinstance(gateway, RazorpayPayoutGateway):
            gateway_info = {
                "type": "razorpay",
                "circuit_breaker": gateway.circuit_breaker.get_stats(),
            }
        else:
            gateway_info = {"type": "simulated"}

        if not db_healthy:
            response.status_code = 503

        return {
            "status": "healthy" if db_healthy else "unhealthy",
            "version": settings.APP_VERSION,
            "components": {
                "database": {"status": "healthy" if db_healthy else "unhealthy"},
                "cache": cache_info,
                "payout_gateway": gateway_info,
                "expiry_sweeper": {"running": container.sweeper.running},
            },
        }

    if settings.METRICS_ENABLED:

        @app.get("/metrics", tags=["Monitoring"])
        async def metrics():
            """
            Prometheus metrics endpoint.

            Returns metrics in Prometheus text format for scraping.
            """
            return Response(
                content=generate_latest(),
                media_type=CONTENT_TYPE_LATEST,
            )

    logger.info("Tresorier application created successfully")
    return app


def get_app() -> FastAPI:
    """
    Get or create application instance.

    For uvicorn: uvicorn tresorier.main:get_app --factory
    """
    return create_app()


def main():
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tresorier.main:get_app",
        factory=True,
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
    )


if __name__ == "__main__":
    main()
