"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.inbox import router as inbox_router

router = APIRouter()
router.include_router(inbox_router)
