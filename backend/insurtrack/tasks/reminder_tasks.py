"""
Celery tasks — scheduled EMI due-date reminders.

Beat enqueues ``send_emi_reminders`` once a day (see ``celeryconfig``).
The async reminder service runs under ``asyncio.run`` on a throwaway
engine, so each task invocation owns its event loop and connection pool.
"""

import asyncio
from datetime import date

import structlog
from sqlalchemy.exc import OperationalError

from insurtrack.db.session import worker_session
from insurtrack.services.email import EmailMessage, EmailSender, get_email_sender
from insurtrack.services.reminders import ReminderRun, run_emi_reminders
from insurtrack.tasks import celery_app

logger = structlog.get_logger("tasks.reminders")

# Infrastructure failures; retried only while no reminder has been handed to the sender.
RETRYABLE_ERRORS = (OSError, OperationalError)


class _TrackedSender:
    """Counts send attempts made during one task run."""

    def __init__(self, sender: EmailSender):
        self._sender = sender
        self.attempts = 0

    async def send(self, message: EmailMessage) -> str:
        self.attempts += 1
        return await self._sender.send(message)


async def _run(sender: EmailSender, today: date | None) -> ReminderRun:
    async with worker_session() as session:
        return await run_emi_reminders(session, sender, today=today)


@celery_app.task(
    bind=True,
    name="insurtrack.tasks.reminder_tasks.send_emi_reminders",
    max_retries=3,
)
def send_emi_reminders(self, today: str | None = None) -> dict:
    """
    Send reminders for EMIs due tomorrow.

    ``today`` (ISO date) overrides the run date for backfills.
    Per-user e-mail failures are counted in the result, not raised.
    """
    task_log = logger.bind(task_id=self.request.id, today=today)
    task_log.info("EMI reminder task started")

    sender = _TrackedSender(get_email_sender())
    try:
        run = asyncio.run(_run(sender, date.fromisoformat(today) if today else None))
    except RETRYABLE_ERRORS as exc:
        if sender.attempts:
            task_log.error(
                "EMI reminder task failed after sending began",
                send_attempts=sender.attempts,
                error=str(exc),
            )
            raise
        task_log.warning("EMI reminder task failed before sending, retrying", error=str(exc))
        raise self.retry(exc=exc, countdown=60 * 2 ** self.request.retries)

    result = {
        "message": run.message,
        "due_date": run.due_date.isoformat(),
        "policiesFound": run.policies_found,
        "emailsSent": run.emails_sent,
        "emailsFailed": run.emails_failed,
        "usersNotified": [str(u) for u in run.users_notified],
    }
    task_log.info("EMI reminder task finished", **{k: v for k, v in result.items() if k != "usersNotified"})
    return result
