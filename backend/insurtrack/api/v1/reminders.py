"""Manual trigger for the EMI reminder job."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.api.deps import get_db, get_mailer, require_admin
from insurtrack.api.schemas.dashboards import ReminderRunResponse
from insurtrack.db.rls import use_service_role
from insurtrack.services.email import EmailSender
from insurtrack.services.reminders import run_emi_reminders

router = APIRouter(prefix="/reminders", tags=["Reminders"], dependencies=[Depends(require_admin)])


@router.post("/emi/run", response_model=ReminderRunResponse)
async def run_reminders_now(
    db: AsyncSession = Depends(get_db),
    mailer: EmailSender = Depends(get_mailer),
) -> ReminderRunResponse:
    """Run today's EMI reminder check immediately (the beat schedule runs it daily)."""
    await use_service_role(db)
    run = await run_emi_reminders(db, mailer)
    return ReminderRunResponse(
        message=run.message,
        due_date=run.due_date,
        policies_found=run.policies_found,
        emails_sent=run.emails_sent,
        emails_failed=run.emails_failed,
        users_notified=run.users_notified,
    )
