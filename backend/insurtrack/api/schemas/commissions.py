"""Commission schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from insurtrack.core.constants import CommissionStatus


class CommissionCreateRequest(BaseModel):
    policy_id: UUID
    agent_id: UUID | None = None


class CommissionResponse(BaseModel):
    id: UUID
    policy_id: UUID
    agent_id: UUID
    commission_rate: Decimal
    commission_amount: Decimal
    status: CommissionStatus
    created_at: datetime
    paid_at: datetime | None
    policy_name: str | None = None
    policy_number: str | None = None
