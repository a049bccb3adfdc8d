"""FastAPI application entry point.

Wires together: logging, middleware, exception handlers, routes, metrics.
Validates config at startup.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from dashboard.api import router as dashboard_router
from shared.config import settings
from shared.database import engine
from shared.exceptions import ProblemDetailError
from shared.logging import configure_logging
from shared.metrics import create_metrics_app
from shared.middleware import (
    RequestIdMiddleware,
    http_exception_handler,
    problem_detail_handler,
    request_validation_handler,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    configure_logging(json_output=settings.log_json, debug=settings.debug_logging)
    logger.info(
        "app_starting",
        adapter_mode=settings.adapter_mode,
        database_url=settings.database_url.split("@")[-1],  # hide credentials
        upstream_timeout_seconds=settings.upstream_timeout_seconds,
        debug_logging=settings.debug_logging,
    )
    yield
    logger.info("app_shutting_down")
    await engine.dispose()


app = FastAPI(
    title="Sleep Dashboard API",
    description=(
        "Reconciles Oura detailed and daily-summary sleep data into one record "
        "per day, decorates it with user notes, and serves card, table and trend views."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestIdMiddleware)

# All errors emit application/problem+json (RFC 9457)
app.add_exception_handler(ProblemDetailError, problem_detail_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)

app.include_router(dashboard_router)

metrics_app = create_metrics_app()
app.mount("/metrics", metrics_app)


@app.get("/health")
async def health():
    return {"status": "ok"}
