"""FastAPI application factory"""

import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from loan_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from loan_ledger.api.routes import accrual, balance, transactions
from loan_ledger.api.security import PAYMENT_REALM
from loan_ledger.config import settings
from loan_ledger.domain.exceptions import UnauthorizedError
from loan_ledger.infrastructure.observability.logging import setup_logging
from loan_ledger.infrastructure.scheduler import accrual_loop

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.store_backend == "sql":
        from loan_ledger.infrastructure.database.session import init_db

        init_db()

    app.state.accrual_task = asyncio.create_task(accrual_loop())
    try:
        yield
    finally:
        app.state.accrual_task.cancel()
        with suppress(asyncio.CancelledError):
            await app.state.accrual_task


async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": str(exc)},
        headers={"WWW-Authenticate": f'Basic realm="{PAYMENT_REALM}"'},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Loan Ledger",
        description="Running loan balance with payment and monthly interest ledger",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Every error leaves as {"error": ...}
    app.add_exception_handler(UnauthorizedError, unauthorized_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(balance.router, tags=["balance"])
    app.include_router(transactions.router, tags=["transactions"])
    app.include_router(accrual.router, tags=["accrual"])

    return app


app = create_app()
