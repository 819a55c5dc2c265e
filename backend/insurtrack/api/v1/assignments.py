"""Agent/client assignment endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_db, get_principal, require_admin, require_client
from insurtrack.api.schemas.agents import AssignmentCreateRequest, AssignmentResponse
from insurtrack.core.access import Principal
from insurtrack.services import clients as client_service

router = APIRouter(prefix="/assignments", tags=["Assignments"])


def _view(view: client_service.AssignmentView) -> AssignmentResponse:
    return AssignmentResponse(
        id=view.assignment.id,
        agent_id=view.assignment.agent_id,
        client_id=view.assignment.client_id,
        assigned_at=view.assignment.assigned_at,
        agent_code=view.agent.agent_code if view.agent else None,
        agent_name=view.agent_profile.full_name if view.agent_profile else None,
        client_name=view.client_profile.full_name if view.client_profile else None,
        client_email=view.client_profile.email if view.client_profile else None,
    )


@router.get("/", response_model=list[AssignmentResponse])
async def list_assignments(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> list[AssignmentResponse]:
    """Admins see every assignment, agents their own, clients theirs."""
    return [_view(v) for v in await client_service.list_assignments(db, principal)]


@router.get("/me", response_model=AssignmentResponse)
async def read_own_assignment(
    principal: Principal = Depends(require_client),
    db: AsyncSession = Depends(get_db),
) -> AssignmentResponse:
    return _view(await client_service.get_own_assignment(db, principal))


@router.post("/", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def assign_client(
    payload: AssignmentCreateRequest,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AssignmentResponse:
    assignment = await client_service.assign_client(
        db, agent_id=payload.agent_id, client_id=payload.client_id
    )
    return AssignmentResponse(
        id=assignment.id,
        agent_id=assignment.agent_id,
        client_id=assignment.client_id,
        assigned_at=assignment.assigned_at,
    )


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unassign_client(
    assignment_id: UUID,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await client_service.unassign_client(db, assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
