"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from crediario.api.middleware import RequestIDMiddleware, MetricsMiddleware
from crediario.api.v1 import customers, sales, installments, reports
from crediario.infrastructure.observability.logging import setup_logging
from crediario.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Crediário Gateway",
        description="Installment sales, payments and credit exposure service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

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
    app.include_router(sales.router, prefix="/v1", tags=["sales"])
    app.include_router(installments.router, prefix="/v1", tags=["installments"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])

    return app


app = create_app()
