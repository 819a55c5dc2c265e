"""
Account workflows: sign-up, the two login portals, password reset,
avatar upload and admin promotion.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.config import settings
from insurtrack.core.constants import ALLOWED_AVATAR_TYPES, STAFF_ROLES, AppRole
from insurtrack.core.errors import (
    AuthenticationError,
    DomainValidationError,
    EmailDeliveryError,
    NotFoundError,
)
from insurtrack.core.logging import get_logger
from insurtrack.core.security import (
    create_access_token,
    create_password_reset_token,
    decode_password_reset_token,
    reset_token_matches,
)
from insurtrack.db.models.profile import Profile
from insurtrack.db.models.user import User
from insurtrack.db.rls import use_service_role
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import users as user_repository
from insurtrack.services import policies as policy_service
from insurtrack.services.email import EmailMessage, EmailSender, render_template
from insurtrack.services.storage import AvatarStore, avatar_key

logger = get_logger(__name__)

STAFF_PORTAL_ONLY = "This login is for Admin/Agent only. Clients should use the Client Login tab."
CLIENT_PORTAL_ONLY = "This login is for clients only. Admin/Agent should use the Admin/Agent Login tab."
INVALID_AGENT_CODE = "Invalid agent code. Please contact your agent for the correct code."
NO_AGENT_ASSIGNED = "No agent assigned to this account. Please contact your agent."
INVALID_CREDENTIALS = "Invalid email or password"


@dataclass
class IssuedToken:
    access_token: str
    expires_in: int
    user_id: uuid.UUID
    role: AppRole


def validate_password(password: str, confirm_password: str | None = None) -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise DomainValidationError(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"
        )
    if confirm_password is not None and password != confirm_password:
        raise DomainValidationError("Passwords don't match")


def issue_token(user: User, role: AppRole) -> IssuedToken:
    token = create_access_token({"sub": str(user.id), "role": role.value, "email": user.email})
    return IssuedToken(
        access_token=token,
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user_id=user.id,
        role=role,
    )


async def register(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str,
    age: int | None = None,
    gender: str | None = None,
    date_of_birth: date | None = None,
) -> User:
    """
    Self sign-up. Creates the account, profile and default ``user`` role.

    The bootstrap admin address is given the ``admin`` role and the demo
    client address receives the starter policies.
    """
    validate_password(password)
    email = user_repository.normalize_email(email)
    role = AppRole.ADMIN if email == settings.BOOTSTRAP_ADMIN_EMAIL.lower() else AppRole.USER

    await use_service_role(db)
    user = await user_repository.create_account(
        db,
        email=email,
        password=password,
        full_name=full_name,
        role=role.value,
        age=age,
        gender=gender,
        date_of_birth=date_of_birth,
    )
    if email == settings.DEMO_CLIENT_EMAIL.lower():
        await policy_service.create_seed_policies(db, user.id)

    logger.info("Account registered", user_id=str(user.id), role=role.value)
    return user


async def staff_login(db: AsyncSession, *, email: str, password: str) -> IssuedToken:
    """Admin/agent portal login."""
    user = await user_repository.authenticate_user(db, email=email, password=password)
    if user is None:
        raise AuthenticationError(INVALID_CREDENTIALS)

    role = await user_repository.get_user_role(db, user.id)
    if role not in STAFF_ROLES:
        logger.info("Client attempted staff login", user_id=str(user.id))
        raise AuthenticationError(STAFF_PORTAL_ONLY)

    await user_repository.record_login(db, user.id)
    logger.info("Staff login", user_id=str(user.id), role=role.value)
    return issue_token(user, role)


async def client_login(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    agent_code: str,
) -> IssuedToken:
    """Client portal login; the client must quote their assigned agent's code."""
    user = await user_repository.authenticate_user(db, email=email, password=password)
    if user is None:
        raise AuthenticationError(INVALID_CREDENTIALS)

    role = await user_repository.get_user_role(db, user.id)
    if role != AppRole.USER:
        raise AuthenticationError(CLIENT_PORTAL_ONLY)

    assignment = await agent_repository.get_assignment_for_client(db, user.id)
    if assignment is None:
        raise AuthenticationError(NO_AGENT_ASSIGNED)

    agent = await agent_repository.get_agent(db, assignment.agent_id)
    if agent is None or agent.agent_code != agent_code.strip():
        logger.info("Client login with wrong agent code", user_id=str(user.id))
        raise AuthenticationError(INVALID_AGENT_CODE)

    await user_repository.record_login(db, user.id)
    logger.info("Client login", user_id=str(user.id), agent_id=str(agent.id))
    return issue_token(user, role)


async def request_password_reset(db: AsyncSession, email: str, sender: EmailSender) -> None:
    """
    E-mail a reset link when the account exists.

    Unknown addresses and delivery failures are logged only, so the
    response never reveals whether an account exists.
    """
    user = await user_repository.get_user_by_email(db, email)
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown account")
        return

    profile = await user_repository.get_profile(db, user.id)
    token = create_password_reset_token(str(user.id), user.hashed_password)
    context = {
        "full_name": profile.full_name if profile else None,
        "reset_url": f"{settings.APP_BASE_URL.rstrip('/')}/reset-password?token={token}",
        "expires_minutes": settings.PASSWORD_RESET_EXPIRE_MINUTES,
    }
    message = EmailMessage(
        to=[user.email],
        subject="Reset your InsurTrack password",
        html=render_template("emails/password_reset.html", **context),
        text=render_template("emails/password_reset.txt", **context),
        tags={"category": "password_reset"},
    )
    try:
        await sender.send(message)
    except EmailDeliveryError as exc:
        logger.error("Password reset e-mail failed", user_id=str(user.id), error=exc.message)
        return
    logger.info("Password reset e-mail sent", user_id=str(user.id))


async def reset_password(
    db: AsyncSession,
    *,
    token: str,
    password: str,
    confirm_password: str,
) -> None:
    validate_password(password, confirm_password)

    payload = decode_password_reset_token(token)
    if payload is None:
        raise AuthenticationError("Invalid or expired password reset link")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise AuthenticationError("Invalid or expired password reset link") from None

    user = await user_repository.get_active_user_by_id(db, user_id)
    if user is None or not reset_token_matches(payload, user.hashed_password):
        raise AuthenticationError("Invalid or expired password reset link")

    await user_repository.update_password(db, user.id, password)
    logger.info("Password reset", user_id=str(user.id))


async def update_own_profile(db: AsyncSession, user_id: uuid.UUID, **fields: object) -> Profile:
    profile = await user_repository.update_profile(db, user_id, **fields)
    if profile is None:
        raise NotFoundError("Profile not found")
    logger.info("Profile updated", user_id=str(user_id), fields=sorted(fields))
    return profile


async def upload_avatar(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    data: bytes,
    content_type: str,
    store: AvatarStore,
) -> Profile:
    """Validate and store a new avatar image, then point the profile at it."""
    extension = ALLOWED_AVATAR_TYPES.get(content_type)
    if extension is None:
        raise DomainValidationError(
            "Please upload an image file",
            details={"content_type": content_type, "allowed": sorted(ALLOWED_AVATAR_TYPES)},
        )
    if not data:
        raise DomainValidationError("Uploaded file is empty")
    if len(data) > settings.AVATAR_MAX_BYTES:
        raise DomainValidationError(
            "Image must be less than 5MB",
            details={"size": len(data), "max": settings.AVATAR_MAX_BYTES},
        )

    url = await store.upload(avatar_key(user_id, extension), data, content_type)
    return await update_own_profile(db, user_id, avatar_url=url)


async def promote_to_admin(db: AsyncSession, email: str) -> User:
    """Replace the account's roles with ``admin``."""
    user = await user_repository.get_user_by_email(db, email)
    if user is None:
        raise NotFoundError("No user found with this email", details={"email": email})

    await use_service_role(db)
    await user_repository.replace_role(db, user.id, AppRole.ADMIN)
    logger.info("User promoted to admin", user_id=str(user.id))
    return user
