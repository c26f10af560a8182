"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from pulse_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from pulse_gateway.api.v1 import customers, health_score, market_intelligence
from pulse_gateway.infrastructure.observability.logging import setup_logging
from pulse_gateway.infrastructure.repositories.customers import CustomerRepository
from pulse_gateway.services.market_intelligence import MarketIntelligenceService
from pulse_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Background sweep of expired intelligence entries
    app.state.market_intelligence.start_cache_cleanup()
    yield
    await app.state.market_intelligence.stop_cache_cleanup()


def create_app(
    market_intelligence_service: MarketIntelligenceService | None = None,
    customer_repository: CustomerRepository | None = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Pulse Gateway",
        description="Customer health scoring and market intelligence service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.market_intelligence = market_intelligence_service or MarketIntelligenceService()
    app.state.customers = customer_repository or CustomerRepository()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(health_score.router, prefix="/v1", tags=["health-score"])
    app.include_router(market_intelligence.router, prefix="/v1", tags=["market-intelligence"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("pulse_gateway.api.main:app", host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
