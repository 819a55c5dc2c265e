"""
Agent provisioning and administration.

``create_agent`` is the privileged path that turns a new account into an
agent: it runs with the service role so the row-level policies of the
calling admin's session do not block writes to another user's rows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.access import Principal
from insurtrack.core.config import settings
from insurtrack.core.constants import AppRole
from insurtrack.core.errors import ConflictError, DomainValidationError, NotFoundError
from insurtrack.core.logging import get_logger
from insurtrack.db.models.agent import Agent
from insurtrack.db.models.profile import Profile
from insurtrack.db.rls import use_service_role
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import users as user_repository
from insurtrack.services.accounts import validate_password

logger = get_logger(__name__)


@dataclass
class AgentWithProfile:
    agent: Agent
    profile: Profile | None


async def create_agent(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str,
    agent_code: str,
    commission_rate: Decimal | float | None = None,
) -> Agent:
    """Create an account with role ``agent`` and its agent record."""
    if not all(v and str(v).strip() for v in (email, password, full_name, agent_code)):
        raise DomainValidationError("Missing required fields")
    validate_password(password)

    rate = Decimal(str(commission_rate if commission_rate is not None else settings.DEFAULT_COMMISSION_RATE))
    if not Decimal("0") <= rate <= Decimal("100"):
        raise DomainValidationError(
            "Commission rate must be between 0 and 100", details={"commission_rate": str(rate)}
        )

    await use_service_role(db)
    if await agent_repository.get_agent_by_code(db, agent_code) is not None:
        raise ConflictError("Agent code is already in use", details={"agent_code": agent_code})

    user = await user_repository.create_account(
        db, email=email, password=password, full_name=full_name, role=AppRole.AGENT.value
    )
    agent = await agent_repository.create_agent(
        db, user_id=user.id, agent_code=agent_code, commission_rate=rate
    )
    logger.info(
        "Agent created",
        agent_id=str(agent.id),
        user_id=str(user.id),
        agent_code=agent.agent_code,
        commission_rate=str(rate),
    )
    return agent


async def list_agents_with_profiles(
    db: AsyncSession,
    *,
    is_active: bool | None = None,
) -> list[AgentWithProfile]:
    agents = await agent_repository.list_agents(db, is_active=is_active)
    profiles = await user_repository.get_profiles(db, [a.user_id for a in agents])
    return [AgentWithProfile(agent=a, profile=profiles.get(a.user_id)) for a in agents]


async def set_agent_status(db: AsyncSession, agent_id: uuid.UUID, is_active: bool) -> Agent:
    agent = await agent_repository.set_active_status(db, agent_id, is_active)
    if agent is None:
        raise NotFoundError("Agent not found", details={"agent_id": str(agent_id)})
    logger.info("Agent status changed", agent_id=str(agent_id), is_active=is_active)
    return agent


async def get_own_agent(db: AsyncSession, principal: Principal) -> Agent:
    agent = await agent_repository.get_agent_by_user(db, principal.user_id)
    if agent is None:
        raise NotFoundError("Agent record not found")
    return agent


async def verify_agent_code(db: AsyncSession, agent_code: str) -> AgentWithProfile:
    """Look up an active agent by the code a client was given."""
    agent = await agent_repository.get_agent_by_code(db, agent_code)
    if agent is None or not agent.is_active:
        raise NotFoundError("Invalid agent code", details={"agent_code": agent_code})
    return AgentWithProfile(agent=agent, profile=await user_repository.get_profile(db, agent.user_id))
