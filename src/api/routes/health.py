"""Liveness and readiness checks."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.dependencies import get_inbox_registry
from core.config import settings
from domain.services.inbox_session import InboxSessionRegistry
from infrastructure.database.session import get_async_session

router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Adds the store check and the number of inboxes with live feeds."""

    database: str
    inbox_sessions: int


def _now() -> str:
    return datetime.now(UTC).isoformat()


@router.get("/health", response_model=HealthResponse, summary="Liveness check")
async def health_check() -> HealthResponse:
    """Answers without touching the store."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        timestamp=_now(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    summary="Readiness check",
)
async def detailed_health_check(
    db: AsyncSession = Depends(get_async_session),
    registry: InboxSessionRegistry = Depends(get_inbox_registry),
) -> DetailedHealthResponse:
    """``degraded`` when the store does not answer a trivial query."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        database = f"unhealthy: {exc}"
    else:
        database = "healthy"

    return DetailedHealthResponse(
        status="healthy" if database == "healthy" else "degraded",
        version=API_VERSION,
        timestamp=_now(),
        environment=settings.app_env,
        database=database,
        inbox_sessions=len(registry),
    )
