"""Dashboard and scheduled-job response schemas."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from insurtrack.api.schemas.policies import PolicyResponse


class PremiumReminderResponse(BaseModel):
    policy: PolicyResponse
    is_paid: bool
    due_label: str


class ClientDashboardResponse(BaseModel):
    total_policies: int
    active_policies: int
    total_coverage: Decimal
    monthly_premium: Decimal
    policies_by_type: dict[str, list[PolicyResponse]]
    premium_reminders: list[PremiumReminderResponse]


class AgentDashboardResponse(BaseModel):
    agent_code: str
    commission_rate: Decimal
    is_active: bool
    full_name: str | None
    total_clients: int
    active_clients: int
    expired_clients: int
    total_coverage: Decimal
    total_commission: Decimal
    pending_commission: Decimal


class AdminDashboardResponse(BaseModel):
    total_agents: int
    active_agents: int
    total_clients: int
    total_assignments: int
    total_policies: int


class ReminderRunResponse(BaseModel):
    message: str
    due_date: date
    policies_found: int
    emails_sent: int
    emails_failed: int
    users_notified: list[UUID]
