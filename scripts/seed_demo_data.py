"""
Seed demo leads for LoanHub testing.

Usage:
    python scripts/seed_demo_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_demo_data.py

This script creates:
- The default commission slab table (if empty)
- Demo leads for two partners, walked to various statuses
- One disbursed lead with its commission
"""

import asyncio
import os
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loanhub.auth import Actor, ActorRole
from loanhub.db import get_db_context
from loanhub.main import seed_default_slabs
from loanhub.models import LeadStatus
from loanhub.services import lead_workflow


ADMIN = Actor(id="demo-admin", role=ActorRole.ADMIN, name="Demo Admin")

# ===== DEMO DATA =====

DEMO_LEADS = [
    {
        "customer_name": "Kiran Rao",
        "loan_type": "personal_loan",
        "loan_amount": Decimal("500000"),
        "partner": ("partner-1", "Ravi Finserv"),
        "path": [LeadStatus.DOCS_COLLECTED, LeadStatus.BANK_LOGGED],
        "bank": "HDFC Bank",
    },
    {
        "customer_name": "Sunita Iyer",
        "loan_type": "home_loan",
        "loan_amount": Decimal("4500000"),
        "partner": ("partner-1", "Ravi Finserv"),
        "path": [LeadStatus.DOCS_COLLECTED, LeadStatus.BANK_LOGGED, LeadStatus.APPROVED],
        "bank": "SBI",
        "disbursed": Decimal("4200000"),
        "finish": True,
    },
    {
        "customer_name": "Arjun Mehta",
        "loan_type": "business_loan",
        "loan_amount": Decimal("1500000"),
        "partner": ("partner-2", "Meena Loans"),
        "path": [LeadStatus.DOCS_COLLECTED, LeadStatus.REJECTED],
    },
    {
        "customer_name": "Priya Nair",
        "loan_type": "car_loan",
        "loan_amount": Decimal("800000"),
        "partner": ("partner-2", "Meena Loans"),
        "path": [],
    },
]


async def seed():
    async with get_db_context() as db:
        created = await seed_default_slabs(db)
        await db.commit()
        print(f"Slabs created: {created}")

        for index, item in enumerate(DEMO_LEADS, start=1):
            partner_id, partner_name = item["partner"]
            lead = await lead_workflow.create_lead(
                db,
                ADMIN,
                customer_id=f"demo-{index}",
                customer_name=item["customer_name"],
                loan_type=item["loan_type"],
                loan_amount=item["loan_amount"],
                partner_id=partner_id,
                partner_name=partner_name,
            )

            for target in item["path"]:
                if target == LeadStatus.APPROVED and item.get("bank"):
                    await lead_workflow.pick_bank(db, lead.id, item["bank"], ADMIN)
                await lead_workflow.advance_lead_status(db, lead.id, target, ADMIN)

            if item.get("bank") and not lead.bank_assigned:
                await lead_workflow.pick_bank(db, lead.id, item["bank"], ADMIN)

            if item.get("disbursed"):
                await lead_workflow.record_lead_disbursement(db, lead.id, item["disbursed"], ADMIN)

            if item.get("finish"):
                await lead_workflow.advance_lead_status(db, lead.id, LeadStatus.DISBURSED, ADMIN)

            print(f"  {lead.reference} {item['customer_name']}: {lead.status.value}")

    print("Done.")


if __name__ == "__main__":
    asyncio.run(seed())
