"""
EMI due-date reminders.

Run once a day (Celery beat, or the admin endpoint). Finds active
policies whose monthly EMI falls due tomorrow and sends each policy
holder one e-mail listing them. A failed send for one user does not
stop the others.
"""

from __future__ import annotations

import calendar
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.config import settings
from insurtrack.core.errors import EmailDeliveryError
from insurtrack.core.logging import get_logger
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.repositories import payments as payment_repository
from insurtrack.repositories import policies as policy_repository
from insurtrack.repositories import users as user_repository
from insurtrack.services.email import EmailMessage, EmailSender, format_inr, render_template

logger = get_logger(__name__)


@dataclass
class ReminderRun:
    due_date: date
    policies_found: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    users_notified: list[uuid.UUID] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.policies_found:
            return "No EMI reminders to send"
        return f"EMI reminders processed: {self.emails_sent} sent, {self.emails_failed} failed"


def due_emi_days(due_date: date) -> list[int]:
    """
    EMI days that fall due on ``due_date``.

    On the last day of a month, EMI days the month does not have
    (e.g. the 31st in April) are due as well.
    """
    last_day = calendar.monthrange(due_date.year, due_date.month)[1]
    if due_date.day == last_day:
        return list(range(due_date.day, 32))
    return [due_date.day]


def build_reminder(
    email: str,
    full_name: str | None,
    policies: list[InsurancePolicy],
    due_date: date,
) -> EmailMessage:
    total = sum((Decimal(p.monthly_emi) for p in policies), Decimal("0"))
    context = {
        "full_name": full_name,
        "policies": policies,
        "total": total,
        "due_date": due_date,
        "dashboard_url": f"{settings.APP_BASE_URL.rstrip('/')}/dashboard",
    }
    return EmailMessage(
        to=[email],
        subject=f"EMI Payment Reminder - {format_inr(total)} Due Tomorrow",
        html=render_template("emails/emi_reminder.html", **context),
        text=render_template("emails/emi_reminder.txt", **context),
        tags={"category": "emi_reminder"},
    )


async def run_emi_reminders(
    db: AsyncSession,
    sender: EmailSender,
    *,
    today: date | None = None,
) -> ReminderRun:
    today = today or date.today()
    due_date = today + timedelta(days=1)
    run = ReminderRun(due_date=due_date)

    emi_days = due_emi_days(due_date)
    logger.info("Starting EMI reminder check", due_date=due_date.isoformat(), emi_days=emi_days)

    policies = await policy_repository.list_emi_due(db, emi_days)
    paid = await payment_repository.paid_policy_ids(
        db, [p.id for p in policies], due_date.month, due_date.year
    )
    policies = [p for p in policies if p.id not in paid]
    run.policies_found = len(policies)
    logger.info("Policies with EMI due tomorrow", count=run.policies_found, already_paid=len(paid))

    if not policies:
        return run

    by_user: dict[uuid.UUID, list[InsurancePolicy]] = defaultdict(list)
    for policy in policies:
        by_user[policy.user_id].append(policy)

    profiles = await user_repository.get_profiles(db, list(by_user))
    for user_id, user_policies in by_user.items():
        profile = profiles.get(user_id)
        if profile is None or not profile.email:
            logger.warning("No e-mail on file for EMI reminder", user_id=str(user_id))
            run.emails_failed += 1
            continue

        message = build_reminder(profile.email, profile.full_name, user_policies, due_date)
        try:
            await sender.send(message)
        except EmailDeliveryError as exc:
            logger.error(
                "EMI reminder failed",
                user_id=str(user_id),
                error=exc.message,
                details=exc.details,
            )
            run.emails_failed += 1
            continue

        run.emails_sent += 1
        run.users_notified.append(user_id)
        logger.info("EMI reminder sent", user_id=str(user_id), policies=len(user_policies))

    logger.info(
        "EMI reminder check complete",
        policies_found=run.policies_found,
        emails_sent=run.emails_sent,
        emails_failed=run.emails_failed,
    )
    return run
