"""
Policy commission repository.

Functions flush, but never commit.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.errors import ConflictError
from insurtrack.db.models.policy_commission import PolicyCommission


async def create_commission(
    db: AsyncSession,
    *,
    policy_id: uuid.UUID,
    agent_id: uuid.UUID,
    commission_rate: Decimal,
    commission_amount: Decimal,
) -> PolicyCommission:
    existing = await db.execute(
        select(PolicyCommission.id).where(
            PolicyCommission.policy_id == policy_id,
            PolicyCommission.agent_id == agent_id,
        )
    )
    if existing.first() is not None:
        raise ConflictError("A commission for this policy and agent already exists")

    commission = PolicyCommission(
        policy_id=policy_id,
        agent_id=agent_id,
        commission_rate=commission_rate,
        commission_amount=commission_amount,
    )
    db.add(commission)
    await db.flush()
    return commission


async def get_commission(db: AsyncSession, commission_id: uuid.UUID) -> PolicyCommission | None:
    return await db.get(PolicyCommission, commission_id)


async def list_commissions(
    db: AsyncSession,
    stmt: Select | None = None,
    *,
    agent_id: uuid.UUID | None = None,
    status: str | None = None,
) -> list[PolicyCommission]:
    """List commissions newest first; ``stmt`` may carry an access scope."""
    if stmt is None:
        stmt = select(PolicyCommission)
    if agent_id is not None:
        stmt = stmt.where(PolicyCommission.agent_id == agent_id)
    if status is not None:
        stmt = stmt.where(PolicyCommission.status == status)
    result = await db.execute(stmt.order_by(PolicyCommission.created_at.desc()))
    return list(result.scalars().all())
