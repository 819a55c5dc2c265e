"""
Premium payment repository.

Functions flush, but never commit.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.errors import ConflictError
from insurtrack.db.models.premium_payment import PremiumPayment


async def create_payment(
    db: AsyncSession,
    *,
    policy_id: uuid.UUID,
    user_id: uuid.UUID,
    amount: Decimal,
    payment_month: int,
    payment_year: int,
    payment_method: str | None = None,
    transaction_id: str | None = None,
) -> PremiumPayment:
    """Record a payment; a second payment for the same policy month conflicts."""
    if await is_month_paid(db, policy_id, payment_month, payment_year):
        raise ConflictError(
            "Premium for this month is already paid",
            details={"month": payment_month, "year": payment_year},
        )

    payment = PremiumPayment(
        policy_id=policy_id,
        user_id=user_id,
        amount=amount,
        payment_month=payment_month,
        payment_year=payment_year,
        payment_method=payment_method or None,
        transaction_id=transaction_id or None,
    )
    db.add(payment)
    await db.flush()
    return payment


async def is_month_paid(db: AsyncSession, policy_id: uuid.UUID, month: int, year: int) -> bool:
    stmt = select(PremiumPayment.id).where(
        PremiumPayment.policy_id == policy_id,
        PremiumPayment.payment_month == month,
        PremiumPayment.payment_year == year,
    )
    result = await db.execute(stmt)
    return result.first() is not None


async def paid_policy_ids(
    db: AsyncSession,
    policy_ids: list[uuid.UUID],
    month: int,
    year: int,
) -> set[uuid.UUID]:
    """Subset of ``policy_ids`` with a payment recorded for month/year."""
    if not policy_ids:
        return set()
    stmt = select(PremiumPayment.policy_id).where(
        PremiumPayment.policy_id.in_(policy_ids),
        PremiumPayment.payment_month == month,
        PremiumPayment.payment_year == year,
    )
    result = await db.execute(stmt)
    return set(result.scalars().all())


async def list_payments_for_policy(
    db: AsyncSession,
    policy_id: uuid.UUID,
    *,
    limit: int | None = None,
) -> list[PremiumPayment]:
    """Payment history, most recent month first."""
    stmt = (
        select(PremiumPayment)
        .where(PremiumPayment.policy_id == policy_id)
        .order_by(PremiumPayment.payment_year.desc(), PremiumPayment.payment_month.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
