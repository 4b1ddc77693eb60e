"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fiado_ledger.api.dependencies import get_request_id
from fiado_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fiado_ledger.api.v1 import cash, customers, products, purchasing, receivables, reports, sales, workshop
from fiado_ledger.domain.exceptions import (
    ConflictError,
    CreditLimitExceeded,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from fiado_ledger.infrastructure.database.session import init_db
from fiado_ledger.infrastructure.observability.logging import setup_logging
from fiado_ledger.infrastructure.observability.metrics import persistence_failures_counter
from fiado_ledger.utils.money import round_cents
from fiado_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def register_error_handlers(app: FastAPI) -> None:
    """Map domain errors that endpoints let through to HTTP responses"""

    @app.exception_handler(PersistenceError)
    async def persistence_error(request: Request, exc: PersistenceError):
        persistence_failures_counter.inc()
        logging.error(f"Row store failure: {exc}", extra={"request_id": get_request_id(request)})
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(CreditLimitExceeded)
    async def credit_limit_exceeded(request: Request, exc: CreditLimitExceeded):
        return JSONResponse(
            status_code=409,
            content={
                "detail": {
                    "error": "credit_limit_exceeded",
                    "limit": str(round_cents(exc.limit)),
                    "current_debt": str(round_cents(exc.current_debt)),
                    "proposed_amount": str(round_cents(exc.proposed_amount)),
                }
            },
        )

    @app.exception_handler(ConflictError)
    async def conflict(request: Request, exc: ConflictError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def invalid(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Fiado Ledger",
        description="Counter sales, service orders and credit-sale receivables for a motorcycle parts shop",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

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
    app.include_router(products.router, prefix="/v1", tags=["products"])
    app.include_router(sales.router, prefix="/v1", tags=["sales"])
    app.include_router(receivables.router, prefix="/v1", tags=["receivables"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])
    app.include_router(workshop.router, prefix="/v1", tags=["workshop"])
    app.include_router(cash.router, prefix="/v1", tags=["cash"])
    app.include_router(purchasing.router, prefix="/v1", tags=["purchasing"])

    return app


app = create_app()
