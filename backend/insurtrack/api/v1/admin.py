"""Admin-only account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_db, require_admin
from insurtrack.api.schemas.auth import MessageResponse, PromoteAdminRequest
from insurtrack.api.schemas.profiles import ProfileResponse
from insurtrack.services import accounts as account_service
from insurtrack.services import clients as client_service

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/clients", response_model=list[ProfileResponse])
async def list_clients(db: AsyncSession = Depends(get_db)) -> list[ProfileResponse]:
    """Every account holding the client role."""
    return [ProfileResponse.model_validate(p) for p in await client_service.list_all_clients(db)]


@router.post("/promote", response_model=MessageResponse)
async def promote_to_admin(
    payload: PromoteAdminRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    user = await account_service.promote_to_admin(db, payload.email)
    return MessageResponse(message=f"{user.email} is now an admin")
