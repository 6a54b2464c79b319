"""
Pytest configuration and fixtures.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IS_PRODUCTION", "true")

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from loanhub.auth import Actor, ActorRole
from loanhub.models import Base, CommissionSlab, Lead, LeadStatus


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN = Actor(id="admin-1", role=ActorRole.ADMIN, name="Asha Admin")
PARTNER = Actor(id="partner-7", role=ActorRole.PARTNER, name="Ravi Partner")
OTHER_PARTNER = Actor(id="partner-9", role=ActorRole.PARTNER, name="Meena Partner")

# (loan_type, min, max, rate)
SLAB_TABLE = [
    ("personal_loan", "0", "500000", "1.0"),
    ("personal_loan", "500000", None, "0.5"),
    ("home_loan", "0", None, "0.75"),
]


def make_slabs(rows=SLAB_TABLE, with_ids=True):
    """Slab table in table order; ids are left for the database when with_ids is False."""
    return [
        CommissionSlab(
            id=index if with_ids else None,
            loan_type=loan_type,
            min_amount=Decimal(min_amount),
            max_amount=Decimal(max_amount) if max_amount is not None else None,
            rate=Decimal(rate),
            is_active=True,
        )
        for index, (loan_type, min_amount, max_amount, rate) in enumerate(rows, start=1)
    ]


def make_lead(**overrides) -> Lead:
    """In-memory lead in 'submitted' with an empty timeline."""
    values = dict(
        id=1,
        customer_id="cust-1",
        customer_name="Kiran Rao",
        customer_phone="+919800000001",
        loan_type="personal_loan",
        loan_amount=Decimal("500000"),
        status=LeadStatus.SUBMITTED,
        partner_id=PARTNER.id,
        partner_name=PARTNER.name,
    )
    values.update(overrides)
    return Lead(**values)


def headers_for(actor: Actor) -> dict:
    headers = {"X-Actor-Id": actor.id, "X-Actor-Role": actor.role.value}
    if actor.name:
        headers["X-Actor-Name"] = actor.name
    return headers


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_slabs(db_session):
    """Persist the test slab table."""
    slabs = make_slabs(with_ids=False)
    db_session.add_all(slabs)
    await db_session.commit()
    return slabs


@pytest_asyncio.fixture
async def client(session_factory, seeded_slabs):
    """HTTP client against the app, backed by the test database."""
    from loanhub.db import get_db
    from loanhub.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return headers_for(ADMIN)


@pytest.fixture
def partner_headers():
    return headers_for(PARTNER)
