"""Panel API router aggregation."""

from fastapi import APIRouter

from loanhub.api.panel.dashboard import router as dashboard_router
from loanhub.api.panel.leads import router as leads_router

panel_router = APIRouter(prefix="/panel", tags=["Panel"])

panel_router.include_router(dashboard_router, prefix="/dashboard")
panel_router.include_router(leads_router)

__all__ = ["panel_router"]
