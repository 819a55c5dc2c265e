"""
Insurance policy repository.

Functions flush, but never commit.  Access scoping is applied by the
caller (see ``insurtrack.core.access``) through the ``stmt`` arguments.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.constants import PolicyStatus
from insurtrack.db.models.insurance_policy import InsurancePolicy

EDITABLE_FIELDS = {
    "policy_name",
    "policy_provider",
    "policy_number",
    "insurance_type",
    "policy_status",
    "coverage_amount",
    "premium_amount",
    "monthly_emi",
    "emi_date",
    "start_date",
    "end_date",
    "description",
}


async def create_policy(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    agent_id: uuid.UUID | None = None,
    **fields: object,
) -> InsurancePolicy:
    """Insert a policy for ``user_id``."""
    values = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    policy = InsurancePolicy(user_id=user_id, agent_id=agent_id, **values)
    db.add(policy)
    await db.flush()
    return policy


async def get_policy(db: AsyncSession, policy_id: uuid.UUID) -> InsurancePolicy | None:
    return await db.get(InsurancePolicy, policy_id)


async def list_policies(
    db: AsyncSession,
    stmt: Select | None = None,
    *,
    user_id: uuid.UUID | None = None,
    insurance_type: str | None = None,
    policy_status: str | None = None,
    offset: int = 0,
    limit: int | None = None,
) -> list[InsurancePolicy]:
    """List policies newest first, with optional owner/type/status filters."""
    if stmt is None:
        stmt = select(InsurancePolicy)
    if user_id is not None:
        stmt = stmt.where(InsurancePolicy.user_id == user_id)
    if insurance_type is not None:
        stmt = stmt.where(InsurancePolicy.insurance_type == insurance_type)
    if policy_status is not None:
        stmt = stmt.where(InsurancePolicy.policy_status == policy_status)
    stmt = stmt.order_by(InsurancePolicy.created_at.desc()).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_policies_for_users(
    db: AsyncSession,
    user_ids: list[uuid.UUID],
) -> list[InsurancePolicy]:
    if not user_ids:
        return []
    stmt = (
        select(InsurancePolicy)
        .where(InsurancePolicy.user_id.in_(user_ids))
        .order_by(InsurancePolicy.created_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_emi_due(db: AsyncSession, emi_days: list[int]) -> list[InsurancePolicy]:
    """Active policies with a monthly EMI falling on any of ``emi_days``."""
    stmt = (
        select(InsurancePolicy)
        .where(
            InsurancePolicy.policy_status == PolicyStatus.ACTIVE.value,
            InsurancePolicy.monthly_emi.is_not(None),
            InsurancePolicy.emi_date.in_(emi_days),
        )
        .order_by(InsurancePolicy.user_id, InsurancePolicy.created_at)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_policy(
    db: AsyncSession,
    policy: InsurancePolicy,
    **fields: object,
) -> InsurancePolicy:
    """Apply editable fields to ``policy``; unknown keys are ignored."""
    for key, value in fields.items():
        if key in EDITABLE_FIELDS:
            setattr(policy, key, value)
    await db.flush()
    return policy


async def delete_policy(db: AsyncSession, policy: InsurancePolicy) -> None:
    await db.delete(policy)
    await db.flush()


async def count_policies(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(InsurancePolicy.id)))
    return int(result.scalar_one())
