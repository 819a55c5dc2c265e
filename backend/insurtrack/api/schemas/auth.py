"""Authentication request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from insurtrack.api.schemas.profiles import ProfileResponse
from insurtrack.core.constants import AppRole, Gender


class SignupRequest(BaseModel):
    """Self-service client sign-up."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=256)
    full_name: str = Field(..., min_length=2, max_length=100)
    age: int | None = Field(default=None, ge=0, le=150)
    gender: Gender | None = None
    date_of_birth: date | None = None


class LoginRequest(BaseModel):
    """Request payload for the admin/agent login portal."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)


class ClientLoginRequest(LoginRequest):
    """Client portal login also requires the assigned agent's code."""

    agent_code: str = Field(..., min_length=1, max_length=50)


class TokenResponse(BaseModel):
    """Bearer access token response."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., ge=1)
    user_id: UUID
    role: AppRole


class CurrentUserResponse(BaseModel):
    """Authenticated account returned by /auth/me."""

    id: UUID
    email: str
    role: AppRole
    is_active: bool
    agent_id: UUID | None = None
    created_at: datetime
    last_login_at: datetime | None
    profile: ProfileResponse | None = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=256)
    confirm_password: str = Field(..., min_length=1, max_length=256)


class PromoteAdminRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str
