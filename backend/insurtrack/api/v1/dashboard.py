"""Dashboard summary endpoints, one per role."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_db, require_admin, require_agent, require_client
from insurtrack.api.schemas.dashboards import (
    AdminDashboardResponse,
    AgentDashboardResponse,
    ClientDashboardResponse,
    PremiumReminderResponse,
)
from insurtrack.api.schemas.policies import PolicyResponse
from insurtrack.core.access import Principal
from insurtrack.services import dashboards as dashboard_service

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/client", response_model=ClientDashboardResponse)
async def client_dashboard(
    principal: Principal = Depends(require_client),
    db: AsyncSession = Depends(get_db),
) -> ClientDashboardResponse:
    summary = await dashboard_service.client_dashboard(db, principal)
    return ClientDashboardResponse(
        total_policies=summary.total_policies,
        active_policies=summary.active_policies,
        total_coverage=summary.total_coverage,
        monthly_premium=summary.monthly_premium,
        policies_by_type={
            kind: [PolicyResponse.model_validate(p) for p in items]
            for kind, items in summary.grouped.items()
        },
        premium_reminders=[
            PremiumReminderResponse(
                policy=PolicyResponse.model_validate(r.policy),
                is_paid=r.is_paid,
                due_label=r.due_label,
            )
            for r in summary.reminders
        ],
    )


@router.get("/agent", response_model=AgentDashboardResponse)
async def agent_dashboard(
    principal: Principal = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
) -> AgentDashboardResponse:
    summary = await dashboard_service.agent_dashboard(db, principal)
    return AgentDashboardResponse(**vars(summary))


@router.get("/admin", response_model=AdminDashboardResponse)
async def admin_dashboard(
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminDashboardResponse:
    summary = await dashboard_service.admin_dashboard(db)
    return AdminDashboardResponse(**vars(summary))
