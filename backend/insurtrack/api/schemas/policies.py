"""Insurance policy and premium payment schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from insurtrack.core.constants import InsuranceType, PolicyStatus

# NOT NULL columns on insurance_policies that an update may change but not clear.
REQUIRED_POLICY_FIELDS = (
    "policy_name",
    "policy_provider",
    "policy_number",
    "insurance_type",
    "policy_status",
    "start_date",
    "end_date",
)


class PolicyBase(BaseModel):
    policy_name: str = Field(..., min_length=2, max_length=100)
    policy_provider: str = Field(..., min_length=2, max_length=100)
    policy_number: str = Field(..., min_length=3, max_length=50)
    insurance_type: InsuranceType
    policy_status: PolicyStatus = PolicyStatus.ACTIVE
    coverage_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    premium_amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    monthly_emi: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    emi_date: int | None = Field(default=None, ge=1, le=31)
    start_date: date
    end_date: date
    description: str | None = Field(default=None, max_length=500)


class PolicyCreateRequest(PolicyBase):
    """``user_id`` is required for agents and admins; clients may omit it."""

    user_id: UUID | None = None
    agent_id: UUID | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "PolicyCreateRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class PolicyUpdateRequest(BaseModel):
    policy_name: str | None = Field(default=None, min_length=2, max_length=100)
    policy_provider: str | None = Field(default=None, min_length=2, max_length=100)
    policy_number: str | None = Field(default=None, min_length=3, max_length=50)
    insurance_type: InsuranceType | None = None
    policy_status: PolicyStatus | None = None
    coverage_amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    premium_amount: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    monthly_emi: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    emi_date: int | None = Field(default=None, ge=1, le=31)
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _reject_null_required(self) -> "PolicyUpdateRequest":
        nulled = sorted(
            key for key in REQUIRED_POLICY_FIELDS
            if key in self.model_fields_set and getattr(self, key) is None
        )
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self


class PolicyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    agent_id: UUID | None
    policy_name: str
    policy_provider: str
    policy_number: str
    insurance_type: InsuranceType
    policy_status: PolicyStatus
    coverage_amount: Decimal | None
    premium_amount: Decimal | None
    monthly_emi: Decimal | None
    emi_date: int | None
    start_date: date
    end_date: date
    description: str | None
    created_at: datetime
    updated_at: datetime


class PolicyListResponse(BaseModel):
    data: list[PolicyResponse]
    total: int


class PaymentCreateRequest(BaseModel):
    payment_month: int = Field(..., ge=1, le=12)
    payment_year: int = Field(..., ge=2000, le=2100)
    payment_method: str | None = Field(default=None, max_length=50)
    transaction_id: str | None = Field(default=None, max_length=100)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    policy_id: UUID
    user_id: UUID
    amount: Decimal
    payment_date: datetime
    payment_month: int
    payment_year: int
    payment_method: str | None
    transaction_id: str | None
    created_at: datetime


class PaymentStatusResponse(BaseModel):
    policy_id: UUID
    month: int
    year: int
    is_paid: bool
    recent_payments: list[PaymentResponse]
