"""
Policy service: role-aware create/read/update/delete on insurance policies.

Visibility goes through ``insurtrack.core.access``; a policy the caller
may not see is reported as not found.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core import access
from insurtrack.core.access import Principal
from insurtrack.core.constants import InsuranceType, PolicyStatus
from insurtrack.core.errors import DomainValidationError, NotFoundError
from insurtrack.core.logging import get_logger
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.repositories import policies as policy_repository
from insurtrack.repositories import users as user_repository

logger = get_logger(__name__)

# Starter policies given to the demo client account.
SEED_POLICIES: tuple[dict[str, Any], ...] = (
    {
        "policy_name": "Life Protection Plus",
        "policy_provider": "LIC India",
        "policy_number": "LIC-2024-001",
        "insurance_type": InsuranceType.LIFE.value,
        "coverage_amount": Decimal("1000000"),
        "premium_amount": Decimal("5000"),
        "monthly_emi": Decimal("5000"),
        "emi_date": 5,
        "term_years": 20,
        "description": "Comprehensive life insurance coverage for family protection",
    },
    {
        "policy_name": "Home Shield Pro",
        "policy_provider": "HDFC ERGO",
        "policy_number": "HOME-2024-001",
        "insurance_type": InsuranceType.HOUSE.value,
        "coverage_amount": Decimal("1000000"),
        "premium_amount": Decimal("5000"),
        "monthly_emi": Decimal("5000"),
        "emi_date": 10,
        "term_years": 10,
        "description": "Complete home insurance with fire, theft, and natural disaster coverage",
    },
)


def add_years(day: date, years: int) -> date:
    """Same calendar day ``years`` later; 29 Feb falls back to 28 Feb."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def _check_dates(start_date: date | None, end_date: date | None) -> None:
    if start_date and end_date and end_date < start_date:
        raise DomainValidationError(
            "End date must be on or after the start date",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )


async def create_seed_policies(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    today: date | None = None,
) -> list[InsurancePolicy]:
    """Give ``user_id`` the demo life and house policies, starting today."""
    today = today or date.today()
    created = []
    for seed in SEED_POLICIES:
        fields = {k: v for k, v in seed.items() if k != "term_years"}
        policy = await policy_repository.create_policy(
            db,
            user_id=user_id,
            policy_status=PolicyStatus.ACTIVE.value,
            start_date=today,
            end_date=add_years(today, seed["term_years"]),
            **fields,
        )
        created.append(policy)
    logger.info("Seed policies created", user_id=str(user_id), count=len(created))
    return created


async def get_visible_policy(
    db: AsyncSession,
    principal: Principal,
    policy_id: uuid.UUID,
) -> InsurancePolicy:
    policy = await policy_repository.get_policy(db, policy_id)
    if policy is None or not await access.can_view_owner(db, principal, policy.user_id):
        raise NotFoundError("Policy not found", details={"policy_id": str(policy_id)})
    return policy


async def list_visible_policies(
    db: AsyncSession,
    principal: Principal,
    *,
    user_id: uuid.UUID | None = None,
    insurance_type: str | None = None,
    policy_status: str | None = None,
    offset: int = 0,
    limit: int | None = None,
) -> list[InsurancePolicy]:
    stmt = access.scope_policies(select(InsurancePolicy), principal)
    return await policy_repository.list_policies(
        db,
        stmt,
        user_id=user_id,
        insurance_type=insurance_type,
        policy_status=policy_status,
        offset=offset,
        limit=limit,
    )


async def create_policy(
    db: AsyncSession,
    principal: Principal,
    *,
    user_id: uuid.UUID | None = None,
    agent_id: uuid.UUID | None = None,
    **fields: Any,
) -> InsurancePolicy:
    """
    Create a policy.

    Clients create for themselves (``user_id`` omitted or their own id).
    Agents create for assigned clients and are recorded as the policy's
    agent. Admins may create for anyone and choose the agent.
    """
    owner_id = user_id or principal.user_id
    if await user_repository.get_profile(db, owner_id) is None:
        raise NotFoundError("Client profile not found", details={"user_id": str(owner_id)})

    _check_dates(fields.get("start_date"), fields.get("end_date"))
    policy_agent = await access.resolve_policy_agent(db, principal, owner_id, agent_id)

    policy = await policy_repository.create_policy(
        db, user_id=owner_id, agent_id=policy_agent, **fields
    )
    logger.info(
        "Policy created",
        policy_id=str(policy.id),
        user_id=str(owner_id),
        agent_id=str(policy_agent) if policy_agent else None,
        created_by=str(principal.user_id),
    )
    return policy


async def update_policy(
    db: AsyncSession,
    principal: Principal,
    policy_id: uuid.UUID,
    **fields: Any,
) -> InsurancePolicy:
    policy = await get_visible_policy(db, principal, policy_id)
    await access.ensure_can_modify_policy(db, principal, policy)

    _check_dates(
        fields.get("start_date", policy.start_date),
        fields.get("end_date", policy.end_date),
    )
    policy = await policy_repository.update_policy(db, policy, **fields)
    logger.info("Policy updated", policy_id=str(policy.id), fields=sorted(fields))
    return policy


async def delete_policy(db: AsyncSession, principal: Principal, policy_id: uuid.UUID) -> None:
    policy = await get_visible_policy(db, principal, policy_id)
    await access.ensure_can_modify_policy(db, principal, policy, deleting=True)
    await policy_repository.delete_policy(db, policy)
    logger.info("Policy deleted", policy_id=str(policy_id), deleted_by=str(principal.user_id))


def group_by_type(policies: list[InsurancePolicy]) -> dict[str, list[InsurancePolicy]]:
    """Bucket policies by insurance type; every type is present, possibly empty."""
    grouped: dict[str, list[InsurancePolicy]] = {t.value: [] for t in InsuranceType}
    for policy in policies:
        grouped.setdefault(policy.insurance_type, []).append(policy)
    return grouped
