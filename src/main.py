"""ASGI entry point for the social inbox service."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_inbox_registry, shutdown_inbox
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler
from infrastructure.database.session import create_tables

setup_logging()
logger = structlog.get_logger()

DESCRIPTION = """\
One live view over a user's friend requests, group invitations and post activity.

Opening the inbox subscribes to the user's feeds; they stay live until the
session is closed with `DELETE /api/v1/inbox`.

Every endpoint except `/health` expects `Authorization: Bearer <token>`.
"""

OPENAPI_TAGS = [
    {"name": "inbox", "description": "Aggregated inbox, actions, selection and alerts"},
    {"name": "health", "description": "Liveness and readiness checks"},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.database_create_tables:
        await create_tables()
    sweeper = asyncio.create_task(
        get_inbox_registry().run_idle_sweeper(settings.inbox_sweep_interval_seconds),
        name="inbox-idle-sweeper",
    )
    logger.info("inbox_service_started", environment=settings.app_env)
    yield
    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper
    shutdown_inbox()
    logger.info("inbox_service_stopped")


def _install_middleware(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Added last runs first: request id, then security headers, then logging.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )


def create_app() -> FastAPI:
    """Build the app: middleware stack, error handlers and routers."""
    app = FastAPI(
        title=settings.app_name,
        description=DESCRIPTION,
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        openapi_tags=OPENAPI_TAGS,
    )
    _install_middleware(app)
    setup_exception_handlers(app)

    app.include_router(v1_router, prefix="/api/v1")
    app.include_router(health_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
