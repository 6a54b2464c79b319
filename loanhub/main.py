"""
LoanHub - Loan Lead Lifecycle & Commission Service

Main FastAPI application with:
- Admin API (leads, bank assignment, disbursement, commissions, audit)
- Partner panel API (own leads, partner dashboard)
- Slab-based commission calculation on disbursement
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, select

from loanhub.api import api_router
from loanhub.config import settings
from loanhub.db import get_db_context
from loanhub.exceptions import (
    BankChangeNotConfirmed,
    DomainException,
    InvalidAmount,
    NotFound,
    PermissionDenied,
)
from loanhub.models import CommissionSlab

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# (loan_type, min_amount, max_amount, rate %)
DEFAULT_SLABS = [
    ("personal_loan", "0", "500000", "1.0"),
    ("personal_loan", "500000", None, "1.5"),
    ("home_loan", "0", "3000000", "0.5"),
    ("home_loan", "3000000", None, "0.75"),
    ("business_loan", "0", "1000000", "1.0"),
    ("business_loan", "1000000", None, "1.25"),
    ("car_loan", "0", None, "0.75"),
    ("lap", "0", None, "0.6"),
    ("education_loan", "0", None, "0.5"),
]

ERROR_STATUS_CODES = {
    NotFound: status.HTTP_404_NOT_FOUND,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    InvalidAmount: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


async def seed_default_slabs(db) -> int:
    """Create the default slab table if no slab exists yet. Returns rows created."""
    existing = await db.scalar(select(func.count()).select_from(CommissionSlab))
    if existing:
        return 0

    for loan_type, min_amount, max_amount, rate in DEFAULT_SLABS:
        db.add(
            CommissionSlab(
                loan_type=loan_type,
                min_amount=Decimal(min_amount),
                max_amount=Decimal(max_amount) if max_amount is not None else None,
                rate=Decimal(rate),
                is_active=True,
            )
        )
    logger.info(f"Created {len(DEFAULT_SLABS)} default commission slabs")
    return len(DEFAULT_SLABS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Seeds the default commission slab table when empty

    Shutdown:
    - Cleanup tasks
    """
    logger.info("Starting LoanHub...")

    if settings.seed_default_slabs:
        async with get_db_context() as db:
            await seed_default_slabs(db)

    logger.info("LoanHub started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down LoanHub...")


# Create FastAPI application
app = FastAPI(
    title="LoanHub",
    description="Loan lead lifecycle and partner commission service",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException):
    """Translate domain errors into JSON responses."""
    status_code = status.HTTP_409_CONFLICT
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    content = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, BankChangeNotConfirmed):
        content["current_bank"] = exc.current_bank
        content["proposed_bank"] = exc.proposed_bank

    logger.info(f"{request.method} {request.url.path} -> {status_code} {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=status_code, content=content)


# Include routers
app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "loanhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
