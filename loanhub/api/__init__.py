"""API router aggregation."""

from fastapi import APIRouter

from loanhub.api.admin import admin_router
from loanhub.api.health import router as health_router
from loanhub.api.panel import panel_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(admin_router)
api_router.include_router(panel_router)

__all__ = ["api_router"]
