"""
PolicyCommission — an agent's commission on a policy.

`commission_rate` is copied from the agent at creation time so later
rate changes do not rewrite history.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from insurtrack.db.models.base import Base, generate_uuid, utcnow


class PolicyCommission(Base):
    __tablename__ = "policy_commissions"
    __table_args__ = (
        UniqueConstraint("policy_id", "agent_id", name="uq_commissions_policy_agent"),
        CheckConstraint(
            "status IN ('pending', 'paid', 'cancelled')", name="ck_commissions_status"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    policy_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("insurance_policies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="CASCADE"), nullable=False, index=True
    )

    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<PolicyCommission policy={self.policy_id} agent={self.agent_id} status={self.status}>"
