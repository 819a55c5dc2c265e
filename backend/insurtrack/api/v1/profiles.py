"""Profile endpoints: personal details and avatar upload."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_db, get_principal, get_storage
from insurtrack.api.schemas.profiles import ProfileResponse, ProfileUpdateRequest
from insurtrack.core import access
from insurtrack.core.access import Principal
from insurtrack.core.config import settings
from insurtrack.core.errors import NotFoundError
from insurtrack.repositories import users as user_repository
from insurtrack.services import accounts as account_service
from insurtrack.services.storage import AvatarStore

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/me", response_model=ProfileResponse)
async def read_own_profile(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await user_repository.get_profile(db, principal.user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return ProfileResponse.model_validate(profile)


@router.put("/me", response_model=ProfileResponse)
async def update_own_profile(
    payload: ProfileUpdateRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Update personal details; fields left out are not touched."""
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("gender") is not None:
        fields["gender"] = fields["gender"].value
    profile = await account_service.update_own_profile(db, principal.user_id, **fields)
    return ProfileResponse.model_validate(profile)


@router.post("/me/avatar", response_model=ProfileResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
    store: AvatarStore = Depends(get_storage),
) -> ProfileResponse:
    # At most one byte past the limit.
    data = await file.read(settings.AVATAR_MAX_BYTES + 1)
    profile = await account_service.upload_avatar(
        db,
        principal.user_id,
        data=data,
        content_type=file.content_type or "",
        store=store,
    )
    return ProfileResponse.model_validate(profile)


@router.get("/{user_id}", response_model=ProfileResponse)
async def read_profile(
    user_id: UUID,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Own profile, an assigned client's profile (agents), or any profile (admins)."""
    profile = await user_repository.get_profile(db, user_id)
    if profile is None or not await access.can_view_owner(db, principal, user_id):
        raise NotFoundError("Profile not found", details={"user_id": str(user_id)})
    return ProfileResponse.model_validate(profile)
