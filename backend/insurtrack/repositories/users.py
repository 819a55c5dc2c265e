"""
Account repository: users, profiles and user_roles.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.constants import AppRole
from insurtrack.core.errors import ConflictError
from insurtrack.core.security import hash_password, verify_password
from insurtrack.db.models.profile import Profile
from insurtrack.db.models.user import User
from insurtrack.db.models.user_role import UserRole


def normalize_email(email: str) -> str:
    return email.lower().strip()


async def create_account(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str,
    role: str = AppRole.USER.value,
    age: int | None = None,
    gender: str | None = None,
    date_of_birth: date | None = None,
    onboarded_by_agent: uuid.UUID | None = None,
) -> User:
    """Create the auth user, its profile and a single role row."""
    email = normalize_email(email)
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("A user with this email address has already been registered")

    user = User(email=email, hashed_password=hash_password(password))
    db.add(user)
    await db.flush()

    db.add(
        Profile(
            id=user.id,
            email=email,
            full_name=full_name.strip(),
            age=age,
            gender=gender,
            date_of_birth=date_of_birth,
            onboarded_by_agent=onboarded_by_agent,
        )
    )
    db.add(UserRole(user_id=user.id, role=AppRole(role).value))
    await db.flush()
    return user


async def get_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Fetch a user by primary key."""
    return await db.get(User, user_id)


async def get_active_user_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Fetch an active user by primary key."""
    stmt = select(User).where(User.id == user_id, User.is_active.is_(True))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email address (case-insensitive)."""
    stmt = select(User).where(User.email == normalize_email(email))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def authenticate_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
) -> User | None:
    """Validate credentials and return active user on success."""
    user = await get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


async def record_login(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Stamp last_login_at on successful authentication."""
    stmt = update(User).where(User.id == user_id).values(last_login_at=datetime.now(timezone.utc))
    await db.execute(stmt)
    await db.flush()


async def update_password(
    db: AsyncSession,
    user_id: uuid.UUID,
    new_password: str,
) -> bool:
    """Change a user's password. Returns True when user exists."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        return False
    user.hashed_password = hash_password(new_password)
    await db.flush()
    return True


# ─── Roles ────────────────────────────────────
async def get_user_role(db: AsyncSession, user_id: uuid.UUID) -> AppRole:
    """Return the user's effective role; the oldest row wins, default ``user``."""
    stmt = (
        select(UserRole.role)
        .where(UserRole.user_id == user_id)
        .order_by(UserRole.created_at)
        .limit(1)
    )
    result = await db.execute(stmt)
    role = result.scalar_one_or_none()
    return AppRole(role) if role else AppRole.USER


async def replace_role(db: AsyncSession, user_id: uuid.UUID, role: AppRole) -> None:
    """Drop every role row for the user and insert ``role``."""
    await db.execute(delete(UserRole).where(UserRole.user_id == user_id))
    db.add(UserRole(user_id=user_id, role=role.value))
    await db.flush()


async def list_user_ids_with_role(db: AsyncSession, role: AppRole) -> list[uuid.UUID]:
    stmt = select(UserRole.user_id).where(UserRole.role == role.value)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ─── Profiles ─────────────────────────────────
async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> Profile | None:
    return await db.get(Profile, user_id)


async def get_profiles(db: AsyncSession, user_ids: list[uuid.UUID]) -> dict[uuid.UUID, Profile]:
    """Bulk-load profiles keyed by id."""
    if not user_ids:
        return {}
    stmt = select(Profile).where(Profile.id.in_(user_ids))
    result = await db.execute(stmt)
    return {p.id: p for p in result.scalars().all()}


async def list_profiles_with_role(db: AsyncSession, role: AppRole) -> list[Profile]:
    """Profiles of every account holding ``role``, newest first."""
    stmt = (
        select(Profile)
        .join(UserRole, UserRole.user_id == Profile.id)
        .where(UserRole.role == role.value)
        .order_by(Profile.created_at.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_profile(
    db: AsyncSession,
    user_id: uuid.UUID,
    **fields: object,
) -> Profile | None:
    """Update editable profile fields and return the updated row."""
    profile = await get_profile(db, user_id)
    if profile is None:
        return None

    allowed = {"full_name", "age", "gender", "date_of_birth", "avatar_url"}
    for key, value in fields.items():
        if key not in allowed:
            continue
        if key == "full_name" and isinstance(value, str):
            value = value.strip()
        setattr(profile, key, value)

    await db.flush()
    return profile
