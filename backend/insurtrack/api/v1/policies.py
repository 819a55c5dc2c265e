"""Insurance policy CRUD and premium payment endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_db, get_principal
from insurtrack.api.schemas.policies import (
    PaymentCreateRequest,
    PaymentResponse,
    PaymentStatusResponse,
    PolicyCreateRequest,
    PolicyListResponse,
    PolicyResponse,
    PolicyUpdateRequest,
)
from insurtrack.core.access import Principal
from insurtrack.core.constants import InsuranceType, PolicyStatus
from insurtrack.services import payments as payment_service
from insurtrack.services import policies as policy_service

router = APIRouter(prefix="/policies", tags=["Policies"])


@router.get("/", response_model=PolicyListResponse)
async def list_policies(
    insurance_type: InsuranceType | None = None,
    policy_status: PolicyStatus | None = None,
    user_id: UUID | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> PolicyListResponse:
    """Policies visible to the caller, newest first."""
    policies = await policy_service.list_visible_policies(
        db,
        principal,
        user_id=user_id,
        insurance_type=insurance_type.value if insurance_type else None,
        policy_status=policy_status.value if policy_status else None,
        offset=offset,
        limit=limit,
    )
    return PolicyListResponse(
        data=[PolicyResponse.model_validate(p) for p in policies],
        total=len(policies),
    )


@router.post("/", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_policy(
    payload: PolicyCreateRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> PolicyResponse:
    fields = payload.model_dump(exclude={"user_id", "agent_id"}, mode="python")
    fields["insurance_type"] = payload.insurance_type.value
    fields["policy_status"] = payload.policy_status.value
    policy = await policy_service.create_policy(
        db,
        principal,
        user_id=payload.user_id,
        agent_id=payload.agent_id,
        **fields,
    )
    return PolicyResponse.model_validate(policy)


@router.get("/{policy_id}", response_model=PolicyResponse)
async def get_policy(
    policy_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> PolicyResponse:
    policy = await policy_service.get_visible_policy(db, principal, policy_id)
    return PolicyResponse.model_validate(policy)


@router.put("/{policy_id}", response_model=PolicyResponse)
async def update_policy(
    policy_id: UUID,
    payload: PolicyUpdateRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> PolicyResponse:
    fields = payload.model_dump(exclude_unset=True)
    for key in ("insurance_type", "policy_status"):
        if fields.get(key) is not None:
            fields[key] = fields[key].value
    policy = await policy_service.update_policy(db, principal, policy_id, **fields)
    return PolicyResponse.model_validate(policy)


@router.delete("/{policy_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_policy(
    policy_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await policy_service.delete_policy(db, principal, policy_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Premium payments ─────────────────────────────────────
@router.post(
    "/{policy_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    policy_id: UUID,
    payload: PaymentCreateRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> PaymentResponse:
    """Pay the premium for one month of an active policy."""
    payment = await payment_service.record_payment(
        db,
        principal,
        policy_id,
        month=payload.payment_month,
        year=payload.payment_year,
        payment_method=payload.payment_method,
        transaction_id=payload.transaction_id,
    )
    return PaymentResponse.model_validate(payment)


@router.get("/{policy_id}/payments", response_model=list[PaymentResponse])
async def list_payments(
    policy_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> list[PaymentResponse]:
    payments = await payment_service.list_payments(db, principal, policy_id)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/{policy_id}/payments/status", response_model=PaymentStatusResponse)
async def payment_status(
    policy_id: UUID,
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=2000, le=2100),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> PaymentStatusResponse:
    """Paid/unpaid for a month (default: current) and the six latest payments."""
    result = await payment_service.payment_status(db, principal, policy_id, month=month, year=year)
    return PaymentStatusResponse(
        policy_id=result.policy_id,
        month=result.month,
        year=result.year,
        is_paid=result.is_paid,
        recent_payments=[PaymentResponse.model_validate(p) for p in result.recent_payments],
    )
