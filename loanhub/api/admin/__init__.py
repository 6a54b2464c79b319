"""Admin API router aggregation."""

from fastapi import APIRouter

from loanhub.api.admin.audit import router as audit_router
from loanhub.api.admin.commissions import router as commissions_router
from loanhub.api.admin.dashboard import router as dashboard_router
from loanhub.api.admin.leads import router as leads_router

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(dashboard_router, prefix="/dashboard")
admin_router.include_router(leads_router)
admin_router.include_router(commissions_router)
admin_router.include_router(audit_router)

__all__ = ["admin_router"]
