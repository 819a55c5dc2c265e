"""Premium payment recording and per-month payment status."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core import access
from insurtrack.core.access import Principal
from insurtrack.core.constants import PolicyStatus
from insurtrack.core.errors import DomainValidationError
from insurtrack.core.logging import get_logger
from insurtrack.db.models.premium_payment import PremiumPayment
from insurtrack.repositories import payments as payment_repository
from insurtrack.services import policies as policy_service

logger = get_logger(__name__)

RECENT_PAYMENTS_SHOWN = 6


@dataclass
class PaymentStatus:
    policy_id: uuid.UUID
    month: int
    year: int
    is_paid: bool
    recent_payments: list[PremiumPayment]


async def record_payment(
    db: AsyncSession,
    principal: Principal,
    policy_id: uuid.UUID,
    *,
    month: int,
    year: int,
    payment_method: str | None = None,
    transaction_id: str | None = None,
) -> PremiumPayment:
    """Mark one month's premium as paid for an active policy."""
    policy = await policy_service.get_visible_policy(db, principal, policy_id)
    access.ensure_can_record_payment(principal, policy)

    if policy.policy_status != PolicyStatus.ACTIVE:
        raise DomainValidationError(
            "Payments can only be recorded for active policies",
            details={"policy_status": policy.policy_status},
        )
    if not 1 <= month <= 12:
        raise DomainValidationError("Payment month must be between 1 and 12", details={"month": month})

    amount = policy.monthly_emi if policy.monthly_emi is not None else policy.premium_amount
    if amount is None:
        raise DomainValidationError("Policy has no EMI or premium amount to pay")

    payment = await payment_repository.create_payment(
        db,
        policy_id=policy.id,
        user_id=policy.user_id,
        amount=amount,
        payment_month=month,
        payment_year=year,
        payment_method=payment_method,
        transaction_id=transaction_id,
    )
    logger.info(
        "Premium payment recorded",
        policy_id=str(policy.id),
        month=month,
        year=year,
        amount=str(amount),
    )
    return payment


async def list_payments(
    db: AsyncSession,
    principal: Principal,
    policy_id: uuid.UUID,
) -> list[PremiumPayment]:
    await policy_service.get_visible_policy(db, principal, policy_id)
    return await payment_repository.list_payments_for_policy(db, policy_id)


async def payment_status(
    db: AsyncSession,
    principal: Principal,
    policy_id: uuid.UUID,
    *,
    month: int | None = None,
    year: int | None = None,
    today: date | None = None,
) -> PaymentStatus:
    """Paid/unpaid for a month (default: the current one) and the latest payments."""
    today = today or date.today()
    month = month or today.month
    year = year or today.year

    await policy_service.get_visible_policy(db, principal, policy_id)
    recent = await payment_repository.list_payments_for_policy(
        db, policy_id, limit=RECENT_PAYMENTS_SHOWN
    )
    return PaymentStatus(
        policy_id=policy_id,
        month=month,
        year=year,
        is_paid=await payment_repository.is_month_paid(db, policy_id, month, year),
        recent_payments=recent,
    )
