"""
PremiumPayment — one recorded premium instalment for a policy month.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from insurtrack.db.models.base import Base, generate_uuid, utcnow


class PremiumPayment(Base):
    __tablename__ = "premium_payments"
    __table_args__ = (
        CheckConstraint("payment_month >= 1 AND payment_month <= 12", name="ck_payments_month"),
        UniqueConstraint("policy_id", "payment_month", "payment_year", name="uq_payments_policy_month"),
        Index("idx_premium_payments_month_year", "payment_year", "payment_month"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    policy_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("insurance_policies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    payment_month: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_year: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PremiumPayment policy={self.policy_id} {self.payment_month}/{self.payment_year} amount={self.amount}>"
