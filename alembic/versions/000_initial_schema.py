"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2024-04-15

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LEAD_STATUSES = ("submitted", "docs_collected", "bank_logged", "approved", "disbursed", "rejected")


def upgrade() -> None:
    """Create lead, commission and audit tables."""

    # Leads table
    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("customer_phone", sa.String(20), nullable=True),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("loan_type", sa.String(100), nullable=False, comment="Opaque loan product code"),
        sa.Column("loan_amount", sa.Numeric(14, 2), nullable=False, comment="Requested amount"),
        sa.Column("tenure_months", sa.Integer(), nullable=True),
        sa.Column("disbursed_amount", sa.Numeric(14, 2), nullable=True, comment="Amount released by the bank"),
        sa.Column("status", sa.Enum(*LEAD_STATUSES, name="leadstatus"), nullable=False),
        sa.Column("bank_assigned", sa.String(100), nullable=True),
        sa.Column("pending_bank", sa.String(100), nullable=True, comment="Proposed bank change awaiting confirmation"),
        sa.Column("partner_id", sa.String(64), nullable=False),
        sa.Column("partner_name", sa.String(100), nullable=False),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_leads_customer_id", "leads", ["customer_id"])
    op.create_index("ix_leads_customer_phone", "leads", ["customer_phone"])
    op.create_index("ix_leads_loan_type", "leads", ["loan_type"])
    op.create_index("ix_leads_status", "leads", ["status"])
    op.create_index("ix_leads_partner_id", "leads", ["partner_id"])

    # Lead timeline (append-only)
    op.create_table(
        "lead_timeline_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lead_id", sa.Integer(), sa.ForeignKey("leads.id"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, comment="1-based position in the lead's timeline"),
        sa.Column(
            "status",
            postgresql.ENUM(*LEAD_STATUSES, name="leadstatus", create_type=False),
            nullable=False,
        ),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.String(100), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
    )
    op.create_index("ix_lead_timeline_events_lead_id", "lead_timeline_events", ["lead_id"])

    # Commission slabs
    op.create_table(
        "commission_slabs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("loan_type", sa.String(100), nullable=False),
        sa.Column("min_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("max_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("rate", sa.Numeric(6, 3), nullable=False),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_commission_slabs_loan_type", "commission_slabs", ["loan_type"])

    # Lead commissions (one per disbursed lead)
    op.create_table(
        "lead_commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("lead_id", sa.Integer(), sa.ForeignKey("leads.id"), nullable=False),
        sa.Column("disbursed_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(6, 3), nullable=False),
        sa.Column("commission_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "paid", name="commissionstatus"),
            nullable=False,
        ),
        sa.Column("status_updated_by", sa.String(100), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_lead_commissions_lead_id", "lead_commissions", ["lead_id"], unique=True)
    op.create_index("ix_lead_commissions_status", "lead_commissions", ["status"])

    # Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_id", sa.String(64), nullable=False),
        sa.Column("actor_role", sa.String(20), nullable=True),
        sa.Column(
            "action",
            sa.Enum(
                "create_lead",
                "advance_status",
                "assign_bank",
                "propose_bank_change",
                "change_bank",
                "cancel_bank_change",
                "record_disbursement",
                "compute_commission",
                "update_commission_status",
                name="auditaction",
            ),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("audit_logs")
    op.drop_table("lead_commissions")
    op.drop_table("commission_slabs")
    op.drop_table("lead_timeline_events")
    op.drop_table("leads")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS auditaction")
    op.execute("DROP TYPE IF EXISTS commissionstatus")
    op.execute("DROP TYPE IF EXISTS leadstatus")
