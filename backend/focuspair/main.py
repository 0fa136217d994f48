# backend/focuspair/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response

from .core.config import settings
from .core.constants import BRAND_NAME
from .core.request_context import configure_logging
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .middleware.request_id import RequestIdMiddleware
from .monitoring.prometheus_metrics import prometheus_metrics
from .monitoring.sentry import init_sentry
from .routes import health
from .routes.v1 import internal_sweeps as internal_sweeps_v1, sessions as sessions_v1

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

init_sentry()


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")

    if settings.environment != "production":
        from .database import init_db

        init_db()

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=f"{BRAND_NAME} API",
    description="Session booking and matching engine",
    version="1.0.0",
    lifespan=app_lifespan,
)

register_error_handlers(app)

# Add middleware in reverse order of execution
if settings.prometheus_enabled:
    app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestIdMiddleware)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(sessions_v1.router, prefix="/sessions")
api_v1.include_router(internal_sweeps_v1.router, prefix="/internal/sweeps")

app.include_router(api_v1)
app.include_router(health.router)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
