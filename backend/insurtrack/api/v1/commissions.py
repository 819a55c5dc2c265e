"""Commission endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_db, require_admin, require_staff
from insurtrack.api.schemas.commissions import CommissionCreateRequest, CommissionResponse
from insurtrack.core.access import Principal
from insurtrack.core.constants import CommissionStatus
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.db.models.policy_commission import PolicyCommission
from insurtrack.services import commissions as commission_service

router = APIRouter(prefix="/commissions", tags=["Commissions"])


def _response(commission: PolicyCommission, policy: InsurancePolicy | None = None) -> CommissionResponse:
    return CommissionResponse(
        id=commission.id,
        policy_id=commission.policy_id,
        agent_id=commission.agent_id,
        commission_rate=commission.commission_rate,
        commission_amount=commission.commission_amount,
        status=commission.status,
        created_at=commission.created_at,
        paid_at=commission.paid_at,
        policy_name=policy.policy_name if policy else None,
        policy_number=policy.policy_number if policy else None,
    )


@router.get("/", response_model=list[CommissionResponse])
async def list_commissions(
    commission_status: CommissionStatus | None = None,
    principal: Principal = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> list[CommissionResponse]:
    """Agents see their own commissions; admins see all."""
    views = await commission_service.list_commissions(
        db,
        principal,
        status=commission_status.value if commission_status else None,
    )
    return [_response(v.commission, v.policy) for v in views]


@router.post("/", response_model=CommissionResponse, status_code=status.HTTP_201_CREATED)
async def create_commission(
    payload: CommissionCreateRequest,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CommissionResponse:
    commission = await commission_service.create_commission(
        db, policy_id=payload.policy_id, agent_id=payload.agent_id
    )
    return _response(commission)


@router.post("/{commission_id}/pay", response_model=CommissionResponse)
async def mark_commission_paid(
    commission_id: UUID,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CommissionResponse:
    return _response(await commission_service.mark_paid(db, commission_id))


@router.post("/{commission_id}/cancel", response_model=CommissionResponse)
async def cancel_commission(
    commission_id: UUID,
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CommissionResponse:
    return _response(await commission_service.cancel(db, commission_id))
