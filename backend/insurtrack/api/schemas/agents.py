"""Agent, client onboarding and assignment schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from insurtrack.api.schemas.policies import PolicyResponse
from insurtrack.api.schemas.profiles import ProfileResponse
from insurtrack.core.constants import Gender


class AgentCreateRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=256)
    full_name: str = Field(..., min_length=2, max_length=100)
    agent_code: str = Field(..., min_length=1, max_length=50)
    commission_rate: Decimal = Field(default=Decimal("10"), ge=0, le=100, decimal_places=2)


class AgentStatusRequest(BaseModel):
    is_active: bool


class AgentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    agent_code: str
    commission_rate: Decimal
    is_active: bool
    created_at: datetime


class AgentDetailResponse(AgentResponse):
    full_name: str | None = None
    email: str | None = None


class OnboardClientRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=256)
    full_name: str = Field(..., min_length=2, max_length=100)
    age: int | None = Field(default=None, ge=0, le=150)
    gender: Gender | None = None
    date_of_birth: date | None = None


class OnboardClientResponse(BaseModel):
    success: bool = True
    client_id: UUID
    agent_code: str
    assigned: bool
    message: str


class ClientWithPolicies(BaseModel):
    profile: ProfileResponse
    policies: list[PolicyResponse]


class AgentClientsResponse(BaseModel):
    active: list[ClientWithPolicies]
    expired: list[ClientWithPolicies]
    all: list[ClientWithPolicies]


class AssignmentCreateRequest(BaseModel):
    agent_id: UUID
    client_id: UUID


class AssignmentResponse(BaseModel):
    id: UUID
    agent_id: UUID
    client_id: UUID
    assigned_at: datetime
    agent_code: str | None = None
    agent_name: str | None = None
    client_name: str | None = None
    client_email: str | None = None
