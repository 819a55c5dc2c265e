"""
Agent repository: agents and agent_clients (assignments).

Functions flush, but never commit.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.errors import ConflictError
from insurtrack.db.models.agent import Agent
from insurtrack.db.models.agent_client import AgentClient


async def create_agent(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    agent_code: str,
    commission_rate: Decimal,
) -> Agent:
    """Insert the agent record for an existing user."""
    agent_code = agent_code.strip()
    if await get_agent_by_code(db, agent_code) is not None:
        raise ConflictError("Agent code is already in use", details={"agent_code": agent_code})

    agent = Agent(user_id=user_id, agent_code=agent_code, commission_rate=commission_rate)
    db.add(agent)
    await db.flush()
    return agent


async def get_agent(db: AsyncSession, agent_id: uuid.UUID) -> Agent | None:
    return await db.get(Agent, agent_id)


async def get_agent_by_user(db: AsyncSession, user_id: uuid.UUID) -> Agent | None:
    result = await db.execute(select(Agent).where(Agent.user_id == user_id))
    return result.scalar_one_or_none()


async def get_agent_by_code(db: AsyncSession, agent_code: str) -> Agent | None:
    result = await db.execute(select(Agent).where(Agent.agent_code == agent_code.strip()))
    return result.scalar_one_or_none()


async def list_agents(db: AsyncSession, *, is_active: bool | None = None) -> list[Agent]:
    """List agents, newest first."""
    stmt = select(Agent).order_by(Agent.created_at.desc())
    if is_active is not None:
        stmt = stmt.where(Agent.is_active.is_(is_active))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def set_active_status(db: AsyncSession, agent_id: uuid.UUID, is_active: bool) -> Agent | None:
    """Activate or deactivate an agent and return the updated row."""
    agent = await get_agent(db, agent_id)
    if agent is None:
        return None
    agent.is_active = is_active
    await db.flush()
    return agent


# ─── Assignments ──────────────────────────────
async def assign_client(db: AsyncSession, *, agent_id: uuid.UUID, client_id: uuid.UUID) -> AgentClient:
    """Assign a client to an agent; duplicate pairs raise ConflictError."""
    existing = await db.execute(
        select(AgentClient.id).where(
            AgentClient.agent_id == agent_id,
            AgentClient.client_id == client_id,
        )
    )
    if existing.first() is not None:
        raise ConflictError("This client is already assigned to this agent")

    assignment = AgentClient(agent_id=agent_id, client_id=client_id)
    db.add(assignment)
    await db.flush()
    return assignment


async def get_assignment(db: AsyncSession, assignment_id: uuid.UUID) -> AgentClient | None:
    return await db.get(AgentClient, assignment_id)


async def get_assignment_for_client(db: AsyncSession, client_id: uuid.UUID) -> AgentClient | None:
    """The client's earliest assignment, if any."""
    stmt = (
        select(AgentClient)
        .where(AgentClient.client_id == client_id)
        .order_by(AgentClient.assigned_at)
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_assignments(db: AsyncSession, stmt: Select | None = None) -> list[AgentClient]:
    """List assignments, newest first; ``stmt`` may carry an access scope."""
    if stmt is None:
        stmt = select(AgentClient)
    result = await db.execute(stmt.order_by(AgentClient.assigned_at.desc()))
    return list(result.scalars().all())


async def list_client_ids(db: AsyncSession, agent_id: uuid.UUID) -> list[uuid.UUID]:
    stmt = (
        select(AgentClient.client_id)
        .where(AgentClient.agent_id == agent_id)
        .order_by(AgentClient.assigned_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_assignments(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(AgentClient.id)))
    return int(result.scalar_one())


async def delete_assignment(db: AsyncSession, assignment_id: uuid.UUID) -> bool:
    """Hard-delete an assignment. Returns True if a row was deleted."""
    assignment = await get_assignment(db, assignment_id)
    if assignment is None:
        return False
    await db.delete(assignment)
    await db.flush()
    return True
