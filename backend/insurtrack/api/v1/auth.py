"""Authentication endpoints: sign-up, the two login portals, password reset, me."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_current_user, get_db, get_mailer, get_principal
from insurtrack.api.schemas.auth import (
    ClientLoginRequest,
    CurrentUserResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
)
from insurtrack.api.schemas.profiles import ProfileResponse
from insurtrack.core.access import Principal
from insurtrack.db.models.user import User
from insurtrack.repositories import users as user_repository
from insurtrack.services import accounts as account_service
from insurtrack.services.email import EmailSender

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(issued: account_service.IssuedToken) -> TokenResponse:
    return TokenResponse(
        access_token=issued.access_token,
        token_type="bearer",
        expires_in=issued.expires_in,
        user_id=issued.user_id,
        role=issued.role,
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Create a client account and sign it in."""
    user = await account_service.register(
        db,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        age=payload.age,
        gender=payload.gender.value if payload.gender else None,
        date_of_birth=payload.date_of_birth,
    )
    role = await user_repository.get_user_role(db, user.id)
    return _token_response(account_service.issue_token(user, role))


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Admin/agent portal login."""
    issued = await account_service.staff_login(db, email=payload.email, password=payload.password)
    return _token_response(issued)


@router.post("/client/login", response_model=TokenResponse)
async def client_login(payload: ClientLoginRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Client portal login with the assigned agent's code."""
    issued = await account_service.client_login(
        db,
        email=payload.email,
        password=payload.password,
        agent_code=payload.agent_code,
    )
    return _token_response(issued)


@router.get("/me", response_model=CurrentUserResponse)
async def read_current_user(
    current_user: User = Depends(get_current_user),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> CurrentUserResponse:
    """Return the authenticated account with its role and profile."""
    profile = await user_repository.get_profile(db, current_user.id)
    return CurrentUserResponse(
        id=current_user.id,
        email=current_user.email,
        role=principal.role,
        is_active=current_user.is_active,
        agent_id=principal.agent_id,
        created_at=current_user.created_at,
        last_login_at=current_user.last_login_at,
        profile=ProfileResponse.model_validate(profile) if profile else None,
    )


@router.post("/forgot-password", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    mailer: EmailSender = Depends(get_mailer),
) -> MessageResponse:
    """Send a reset link if the account exists; the response is the same either way."""
    await account_service.request_password_reset(db, payload.email, mailer)
    return MessageResponse(message="If an account exists for this email, a reset link has been sent")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(payload: ResetPasswordRequest, db: AsyncSession = Depends(get_db)) -> MessageResponse:
    await account_service.reset_password(
        db,
        token=payload.token,
        password=payload.password,
        confirm_password=payload.confirm_password,
    )
    return MessageResponse(message="Password updated successfully")
