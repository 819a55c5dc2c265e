"""Shared dependencies for API routes."""

from __future__ import annotations

import uuid
from typing import Any, AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.access import Principal, require_role
from insurtrack.core.constants import AppRole
from insurtrack.core.security import decode_access_token
from insurtrack.db.models.user import User
from insurtrack.db.rls import bind_request_user
from insurtrack.db.session import get_db as _get_db
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import users as user_repository
from insurtrack.services.email import EmailSender, get_email_sender
from insurtrack.services.storage import AvatarStore, get_avatar_store

security_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session."""
    async for session in _get_db():
        yield session


def get_mailer() -> EmailSender:
    return get_email_sender()


def get_storage() -> AvatarStore:
    return get_avatar_store()


async def get_current_token_payload(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> dict[str, Any]:
    """Extract and validate JWT payload from bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials were not provided",
        )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return payload


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token_payload: dict[str, Any] = Depends(get_current_token_payload),
) -> User:
    """Resolve an active user from JWT payload."""
    subject = token_payload.get("sub")
    try:
        user_id = uuid.UUID(str(subject))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        ) from None

    user = await user_repository.get_active_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive user",
        )

    return user


async def get_principal(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Principal:
    """Current user with role and agent record, read from the database."""
    role = await user_repository.get_user_role(db, user.id)
    agent_id = None
    if role == AppRole.AGENT:
        agent = await agent_repository.get_agent_by_user(db, user.id)
        agent_id = agent.id if agent is not None else None

    await bind_request_user(db, user.id)
    return Principal(user_id=user.id, email=user.email, role=role, agent_id=agent_id)


def require_roles(*roles: AppRole):
    """Dependency factory: the caller must hold one of ``roles``."""

    async def _check(principal: Principal = Depends(get_principal)) -> Principal:
        require_role(principal, *roles)
        return principal

    return _check


require_admin = require_roles(AppRole.ADMIN)
require_agent = require_roles(AppRole.AGENT)
require_staff = require_roles(AppRole.ADMIN, AppRole.AGENT)
require_client = require_roles(AppRole.USER)
