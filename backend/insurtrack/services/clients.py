"""
Client onboarding and agent/client assignments.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core import access
from insurtrack.core.access import Principal
from insurtrack.core.constants import CLOSED_POLICY_STATUSES, AppRole, PolicyStatus
from insurtrack.core.errors import ConflictError, DomainValidationError, NotFoundError
from insurtrack.core.logging import get_logger
from insurtrack.db.models.agent import Agent
from insurtrack.db.models.agent_client import AgentClient
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.db.models.profile import Profile
from insurtrack.db.rls import use_service_role
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import policies as policy_repository
from insurtrack.repositories import users as user_repository
from insurtrack.services.accounts import validate_password

logger = get_logger(__name__)


@dataclass
class OnboardResult:
    client_id: uuid.UUID
    agent_code: str
    assigned: bool
    message: str


@dataclass
class ClientSummary:
    profile: Profile
    policies: list[InsurancePolicy] = field(default_factory=list)

    @property
    def has_active_policy(self) -> bool:
        return any(p.policy_status == PolicyStatus.ACTIVE for p in self.policies)

    @property
    def is_expired(self) -> bool:
        """Has policies, and every one of them is expired or cancelled."""
        return bool(self.policies) and all(
            p.policy_status in CLOSED_POLICY_STATUSES for p in self.policies
        )


@dataclass
class AgentClients:
    active: list[ClientSummary]
    expired: list[ClientSummary]
    all: list[ClientSummary]


@dataclass
class AssignmentView:
    assignment: AgentClient
    agent: Agent | None
    agent_profile: Profile | None
    client_profile: Profile | None


async def onboard_client(
    db: AsyncSession,
    principal: Principal,
    *,
    email: str,
    password: str,
    full_name: str,
    age: int | None = None,
    gender: str | None = None,
    date_of_birth: date | None = None,
) -> OnboardResult:
    """
    Agent creates a client account and takes it on.

    The account is committed even if the assignment cannot be written;
    that failure is logged and reported in ``assigned``.
    """
    if not all(v and v.strip() for v in (email, password, full_name)):
        raise DomainValidationError("Missing required fields")
    validate_password(password)

    agent = await agent_repository.get_agent_by_user(db, principal.user_id)
    if agent is None:
        raise NotFoundError("Agent record not found")

    await use_service_role(db)
    user = await user_repository.create_account(
        db,
        email=email,
        password=password,
        full_name=full_name,
        role=AppRole.USER.value,
        age=age,
        gender=gender,
        date_of_birth=date_of_birth,
        onboarded_by_agent=agent.id,
    )

    assigned = True
    try:
        await agent_repository.assign_client(db, agent_id=agent.id, client_id=user.id)
    except ConflictError as exc:
        assigned = False
        logger.error(
            "Client assignment failed during onboarding",
            agent_id=str(agent.id),
            client_id=str(user.id),
            error=exc.message,
        )

    logger.info("Client onboarded", agent_id=str(agent.id), client_id=str(user.id))
    return OnboardResult(
        client_id=user.id,
        agent_code=agent.agent_code,
        assigned=assigned,
        message=(
            f"Client created. They can login with email: {user.email} and the password "
            f"you set, using agent code: {agent.agent_code}"
        ),
    )


async def list_agent_clients(db: AsyncSession, agent_id: uuid.UUID) -> AgentClients:
    """Assigned clients with their policies, split into active and expired."""
    client_ids = await agent_repository.list_client_ids(db, agent_id)
    profiles = await user_repository.get_profiles(db, client_ids)
    policies = await policy_repository.list_policies_for_users(db, client_ids)

    summaries = {cid: ClientSummary(profile=profiles[cid]) for cid in client_ids if cid in profiles}
    for policy in policies:
        if policy.user_id in summaries:
            summaries[policy.user_id].policies.append(policy)

    ordered = list(summaries.values())
    return AgentClients(
        active=[c for c in ordered if c.has_active_policy],
        expired=[c for c in ordered if c.is_expired],
        all=ordered,
    )


async def list_all_clients(db: AsyncSession) -> list[Profile]:
    return await user_repository.list_profiles_with_role(db, AppRole.USER)


async def assign_client(db: AsyncSession, *, agent_id: uuid.UUID, client_id: uuid.UUID) -> AgentClient:
    """Admin assigns a client account to an active agent."""
    agent = await agent_repository.get_agent(db, agent_id)
    if agent is None:
        raise NotFoundError("Agent not found", details={"agent_id": str(agent_id)})
    if not agent.is_active:
        raise DomainValidationError("Clients can only be assigned to active agents")

    if await user_repository.get_profile(db, client_id) is None:
        raise NotFoundError("Client not found", details={"client_id": str(client_id)})
    if await user_repository.get_user_role(db, client_id) != AppRole.USER:
        raise DomainValidationError("Only client accounts can be assigned to agents")

    assignment = await agent_repository.assign_client(db, agent_id=agent_id, client_id=client_id)
    logger.info("Client assigned", agent_id=str(agent_id), client_id=str(client_id))
    return assignment


async def unassign_client(db: AsyncSession, assignment_id: uuid.UUID) -> None:
    if not await agent_repository.delete_assignment(db, assignment_id):
        raise NotFoundError("Assignment not found", details={"assignment_id": str(assignment_id)})
    logger.info("Client unassigned", assignment_id=str(assignment_id))


async def list_assignments(db: AsyncSession, principal: Principal) -> list[AssignmentView]:
    """Assignments visible to the caller, with agent and client details."""
    stmt = access.scope_assignments(select(AgentClient), principal)
    assignments = await agent_repository.list_assignments(db, stmt)

    agents = {a.id: a for a in await agent_repository.list_agents(db)}
    profile_ids = {a.client_id for a in assignments}
    profile_ids.update(agents[a.agent_id].user_id for a in assignments if a.agent_id in agents)
    profiles = await user_repository.get_profiles(db, list(profile_ids))

    views = []
    for assignment in assignments:
        agent = agents.get(assignment.agent_id)
        views.append(
            AssignmentView(
                assignment=assignment,
                agent=agent,
                agent_profile=profiles.get(agent.user_id) if agent else None,
                client_profile=profiles.get(assignment.client_id),
            )
        )
    return views


async def get_own_assignment(db: AsyncSession, principal: Principal) -> AssignmentView:
    """The calling client's agent assignment."""
    assignment = await agent_repository.get_assignment_for_client(db, principal.user_id)
    if assignment is None:
        raise NotFoundError("No agent assigned to this account")
    agent = await agent_repository.get_agent(db, assignment.agent_id)
    return AssignmentView(
        assignment=assignment,
        agent=agent,
        agent_profile=await user_repository.get_profile(db, agent.user_id) if agent else None,
        client_profile=await user_repository.get_profile(db, principal.user_id),
    )
