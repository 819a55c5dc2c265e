"""
InsurancePolicy — a personal policy owned by a client.

`monthly_emi` and `emi_date` (day of month, 1–31) drive the premium
reminders and the "paid this month" status.  `agent_id` records the
agent who sold or manages the policy.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from insurtrack.db.models.base import Base, generate_uuid, utcnow


class InsurancePolicy(Base):
    __tablename__ = "insurance_policies"
    __table_args__ = (
        CheckConstraint("emi_date >= 1 AND emi_date <= 31", name="ck_policies_emi_date"),
        CheckConstraint(
            "insurance_type IN ('life', 'health', 'vehicle', 'house')",
            name="ck_policies_insurance_type",
        ),
        CheckConstraint(
            "policy_status IN ('active', 'pending', 'expired', 'cancelled')",
            name="ck_policies_status",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # ── Identity ──────────────────────────────
    policy_name: Mapped[str] = mapped_column(String(100), nullable=False)
    policy_provider: Mapped[str] = mapped_column(String(100), nullable=False)
    policy_number: Mapped[str] = mapped_column(String(50), nullable=False)
    insurance_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    policy_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", index=True
    )

    # ── Money ─────────────────────────────────
    coverage_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    premium_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    monthly_emi: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    emi_date: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)

    # ── Term ──────────────────────────────────
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<InsurancePolicy {self.policy_number} type={self.insurance_type} status={self.policy_status}>"
