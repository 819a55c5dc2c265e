"""initial schema: accounts, agents, policies, payments, commissions

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-10-28 14:25:38
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("hashed_password", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "agents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("agent_code", sa.String(50), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False, server_default="10"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "commission_rate >= 0 AND commission_rate <= 100", name="ck_agents_commission_rate"
        ),
    )
    op.create_index("ix_agents_agent_code", "agents", ["agent_code"], unique=True)

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(32), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("onboarded_by_agent", sa.Uuid(), sa.ForeignKey("agents.id"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("age >= 0 AND age <= 150", name="ck_profiles_age_range"),
        sa.CheckConstraint(
            "gender IN ('male', 'female', 'other', 'prefer_not_to_say')", name="ck_profiles_gender"
        ),
    )
    op.create_index("ix_profiles_onboarded_by_agent", "profiles", ["onboarded_by_agent"])

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
        sa.CheckConstraint("role IN ('admin', 'agent', 'user')", name="ck_user_roles_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    op.create_table(
        "agent_clients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("client_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("agent_id", "client_id", name="uq_agent_clients_pair"),
    )
    op.create_index("ix_agent_clients_agent_id", "agent_clients", ["agent_id"])
    op.create_index("ix_agent_clients_client_id", "agent_clients", ["client_id"])

    op.create_table(
        "insurance_policies",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="SET NULL"), nullable=True),
        sa.Column("policy_name", sa.String(100), nullable=False),
        sa.Column("policy_provider", sa.String(100), nullable=False),
        sa.Column("policy_number", sa.String(50), nullable=False),
        sa.Column("insurance_type", sa.String(20), nullable=False),
        sa.Column("policy_status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("coverage_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("premium_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("monthly_emi", sa.Numeric(10, 2), nullable=True),
        sa.Column("emi_date", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("emi_date >= 1 AND emi_date <= 31", name="ck_policies_emi_date"),
        sa.CheckConstraint(
            "insurance_type IN ('life', 'health', 'vehicle', 'house')", name="ck_policies_insurance_type"
        ),
        sa.CheckConstraint(
            "policy_status IN ('active', 'pending', 'expired', 'cancelled')", name="ck_policies_status"
        ),
    )
    for column in ("user_id", "agent_id", "insurance_type", "policy_status", "emi_date"):
        op.create_index(f"ix_insurance_policies_{column}", "insurance_policies", [column])

    op.create_table(
        "premium_payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "policy_id", sa.Uuid(), sa.ForeignKey("insurance_policies.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("payment_month", sa.Integer(), nullable=False),
        sa.Column("payment_year", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("transaction_id", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("payment_month >= 1 AND payment_month <= 12", name="ck_payments_month"),
        sa.UniqueConstraint("policy_id", "payment_month", "payment_year", name="uq_payments_policy_month"),
    )
    op.create_index("ix_premium_payments_policy_id", "premium_payments", ["policy_id"])
    op.create_index("ix_premium_payments_user_id", "premium_payments", ["user_id"])
    op.create_index("idx_premium_payments_month_year", "premium_payments", ["payment_year", "payment_month"])

    op.create_table(
        "policy_commissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "policy_id", sa.Uuid(), sa.ForeignKey("insurance_policies.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("agent_id", sa.Uuid(), sa.ForeignKey("agents.id", ondelete="CASCADE"), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("policy_id", "agent_id", name="uq_commissions_policy_agent"),
        sa.CheckConstraint("status IN ('pending', 'paid', 'cancelled')", name="ck_commissions_status"),
    )
    op.create_index("ix_policy_commissions_policy_id", "policy_commissions", ["policy_id"])
    op.create_index("ix_policy_commissions_agent_id", "policy_commissions", ["agent_id"])


def downgrade() -> None:
    op.drop_table("policy_commissions")
    op.drop_table("premium_payments")
    op.drop_table("insurance_policies")
    op.drop_table("agent_clients")
    op.drop_table("user_roles")
    op.drop_table("profiles")
    op.drop_table("agents")
    op.drop_table("users")
