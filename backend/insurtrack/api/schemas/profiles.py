"""Profile schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from insurtrack.core.constants import Gender


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str | None
    age: int | None
    gender: Gender | None
    date_of_birth: date | None
    avatar_url: str | None
    onboarded_by_agent: UUID | None
    created_at: datetime
    updated_at: datetime


class ProfileUpdateRequest(BaseModel):
    """Personal details form; omitted fields are left unchanged."""

    full_name: str | None = Field(default=None, min_length=2, max_length=100)
    age: int | None = Field(default=None, ge=0, le=150)
    gender: Gender | None = None
    date_of_birth: date | None = None
