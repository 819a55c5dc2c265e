"""Agent commissions on policies."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core import access
from insurtrack.core.access import Principal
from insurtrack.core.constants import CommissionStatus
from insurtrack.core.errors import DomainValidationError, NotFoundError
from insurtrack.core.logging import get_logger
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.db.models.policy_commission import PolicyCommission
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import commissions as commission_repository
from insurtrack.repositories import policies as policy_repository

logger = get_logger(__name__)

CENT = Decimal("0.01")


@dataclass
class CommissionView:
    commission: PolicyCommission
    policy: InsurancePolicy | None


@dataclass
class CommissionTotals:
    total: Decimal
    pending: Decimal


def commission_amount(premium: Decimal | None, rate: Decimal) -> Decimal:
    """premium × rate / 100, rounded half-up to paise."""
    return (Decimal(premium or 0) * Decimal(rate) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)


async def create_commission(
    db: AsyncSession,
    *,
    policy_id: uuid.UUID,
    agent_id: uuid.UUID | None = None,
) -> PolicyCommission:
    """Record the commission an agent earns on a policy at the agent's current rate."""
    policy = await policy_repository.get_policy(db, policy_id)
    if policy is None:
        raise NotFoundError("Policy not found", details={"policy_id": str(policy_id)})

    agent_id = agent_id or policy.agent_id
    if agent_id is None:
        raise DomainValidationError("Policy has no agent to pay a commission to")
    agent = await agent_repository.get_agent(db, agent_id)
    if agent is None:
        raise NotFoundError("Agent not found", details={"agent_id": str(agent_id)})

    commission = await commission_repository.create_commission(
        db,
        policy_id=policy.id,
        agent_id=agent.id,
        commission_rate=agent.commission_rate,
        commission_amount=commission_amount(policy.premium_amount, agent.commission_rate),
    )
    logger.info(
        "Commission created",
        commission_id=str(commission.id),
        policy_id=str(policy.id),
        agent_id=str(agent.id),
        amount=str(commission.commission_amount),
    )
    return commission


async def _get_or_404(db: AsyncSession, commission_id: uuid.UUID) -> PolicyCommission:
    commission = await commission_repository.get_commission(db, commission_id)
    if commission is None:
        raise NotFoundError("Commission not found", details={"commission_id": str(commission_id)})
    return commission


async def mark_paid(db: AsyncSession, commission_id: uuid.UUID) -> PolicyCommission:
    commission = await _get_or_404(db, commission_id)
    if commission.status == CommissionStatus.CANCELLED:
        raise DomainValidationError("A cancelled commission cannot be paid")
    if commission.status != CommissionStatus.PAID:
        commission.status = CommissionStatus.PAID.value
        commission.paid_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Commission paid", commission_id=str(commission.id))
    return commission


async def cancel(db: AsyncSession, commission_id: uuid.UUID) -> PolicyCommission:
    commission = await _get_or_404(db, commission_id)
    if commission.status == CommissionStatus.PAID:
        raise DomainValidationError("A paid commission cannot be cancelled")
    commission.status = CommissionStatus.CANCELLED.value
    await db.flush()
    logger.info("Commission cancelled", commission_id=str(commission.id))
    return commission


async def list_commissions(
    db: AsyncSession,
    principal: Principal,
    *,
    status: str | None = None,
) -> list[CommissionView]:
    """Commissions visible to the caller with the policy each one is for."""
    stmt = access.scope_commissions(select(PolicyCommission), principal)
    commissions = await commission_repository.list_commissions(db, stmt, status=status)

    policy_ids = list({c.policy_id for c in commissions})
    policies: dict[uuid.UUID, InsurancePolicy] = {}
    if policy_ids:
        result = await db.execute(select(InsurancePolicy).where(InsurancePolicy.id.in_(policy_ids)))
        policies = {p.id: p for p in result.scalars().all()}
    return [CommissionView(commission=c, policy=policies.get(c.policy_id)) for c in commissions]


async def totals_for_agent(db: AsyncSession, agent_id: uuid.UUID) -> CommissionTotals:
    """Sum of all non-cancelled commissions, and of those still pending."""
    stmt = (
        select(PolicyCommission.status, func.coalesce(func.sum(PolicyCommission.commission_amount), 0))
        .where(PolicyCommission.agent_id == agent_id)
        .group_by(PolicyCommission.status)
    )
    result = await db.execute(stmt)
    by_status = {status: Decimal(str(amount)) for status, amount in result.all()}

    pending = by_status.get(CommissionStatus.PENDING.value, Decimal("0"))
    paid = by_status.get(CommissionStatus.PAID.value, Decimal("0"))
    return CommissionTotals(total=(pending + paid).quantize(CENT), pending=pending.quantize(CENT))
