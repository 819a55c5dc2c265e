"""Agent endpoints: admin management, agent self-service and client onboarding."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_db, get_principal, require_admin, require_agent
from insurtrack.api.schemas.agents import (
    AgentClientsResponse,
    AgentCreateRequest,
    AgentDetailResponse,
    AgentResponse,
    AgentStatusRequest,
    ClientWithPolicies,
    OnboardClientRequest,
    OnboardClientResponse,
)
from insurtrack.api.schemas.policies import PolicyResponse
from insurtrack.api.schemas.profiles import ProfileResponse
from insurtrack.core.access import Principal
from insurtrack.services import agents as agent_service
from insurtrack.services import clients as client_service

router = APIRouter(prefix="/agents", tags=["Agents"])


def _detail(item: agent_service.AgentWithProfile) -> AgentDetailResponse:
    base = AgentResponse.model_validate(item.agent).model_dump()
    return AgentDetailResponse(
        **base,
        full_name=item.profile.full_name if item.profile else None,
        email=item.profile.email if item.profile else None,
    )


def _client(summary: client_service.ClientSummary) -> ClientWithPolicies:
    return ClientWithPolicies(
        profile=ProfileResponse.model_validate(summary.profile),
        policies=[PolicyResponse.model_validate(p) for p in summary.policies],
    )


# ─── Admin ────────────────────────────────────────────────
@router.get("/", response_model=list[AgentDetailResponse])
async def list_agents(
    is_active: bool | None = None,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[AgentDetailResponse]:
    items = await agent_service.list_agents_with_profiles(db, is_active=is_active)
    return [_detail(i) for i in items]


@router.post("/", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def create_agent(
    payload: AgentCreateRequest,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AgentResponse:
    """Create an agent account and its agent record."""
    agent = await agent_service.create_agent(
        db,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        agent_code=payload.agent_code,
        commission_rate=payload.commission_rate,
    )
    return AgentResponse.model_validate(agent)


@router.patch("/{agent_id}/status", response_model=AgentResponse)
async def set_agent_status(
    agent_id: UUID,
    payload: AgentStatusRequest,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AgentResponse:
    agent = await agent_service.set_agent_status(db, agent_id, payload.is_active)
    return AgentResponse.model_validate(agent)


# ─── Any authenticated user ───────────────────────────────
@router.get("/verify/{agent_code}", response_model=AgentDetailResponse)
async def verify_agent_code(
    agent_code: str,
    _: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> AgentDetailResponse:
    return _detail(await agent_service.verify_agent_code(db, agent_code))


# ─── Agent self-service ───────────────────────────────────
@router.get("/me", response_model=AgentResponse)
async def read_own_agent(
    principal: Principal = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
) -> AgentResponse:
    return AgentResponse.model_validate(await agent_service.get_own_agent(db, principal))


@router.get("/me/clients", response_model=AgentClientsResponse)
async def list_own_clients(
    principal: Principal = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
) -> AgentClientsResponse:
    """Assigned clients with policies, split into active and expired."""
    agent = await agent_service.get_own_agent(db, principal)
    clients = await client_service.list_agent_clients(db, agent.id)
    return AgentClientsResponse(
        active=[_client(c) for c in clients.active],
        expired=[_client(c) for c in clients.expired],
        all=[_client(c) for c in clients.all],
    )


@router.post(
    "/me/clients",
    response_model=OnboardClientResponse,
    status_code=status.HTTP_201_CREATED,
)
async def onboard_client(
    payload: OnboardClientRequest,
    principal: Principal = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
) -> OnboardClientResponse:
    """Create a client account and assign it to the calling agent."""
    result = await client_service.onboard_client(
        db,
        principal,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        age=payload.age,
        gender=payload.gender.value if payload.gender else None,
        date_of_birth=payload.date_of_birth,
    )
    return OnboardClientResponse(
        client_id=result.client_id,
        agent_code=result.agent_code,
        assigned=result.assigned,
        message=result.message,
    )
