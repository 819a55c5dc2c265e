from datetime import date, timedelta
from decimal import Decimal

import pytest

from insurtrack.repositories import payments as payment_repository
from insurtrack.services.reminders import due_emi_days, run_emi_reminders


@pytest.mark.parametrize(
    ("due", "expected"),
    [
        (date(2025, 5, 15), [15]),
        (date(2025, 4, 30), [30, 31]),
        (date(2025, 2, 28), [28, 29, 30, 31]),
        (date(2024, 2, 28), [28]),
        (date(2024, 2, 29), [29, 30, 31]),
        (date(2025, 12, 31), [31]),
    ],
)
def test_due_emi_days(due, expected):
    assert due_emi_days(due) == expected


async def test_run_groups_policies_per_user(db, accounts, mailer):
    holder = await accounts.client(full_name="Kavita Iyer")
    await accounts.policy(holder, policy_name="Health First", monthly_emi=Decimal("1000"), emi_date=15)
    await accounts.policy(holder, policy_name="Motor Guard", monthly_emi=Decimal("2500.50"), emi_date=15)

    already_paid = await accounts.client()
    paid_policy = await accounts.policy(already_paid, emi_date=15)
    await payment_repository.create_payment(
        db, policy_id=paid_policy.id, user_id=already_paid.id, amount=Decimal("1000"),
        payment_month=4, payment_year=2025,
    )

    other_day = await accounts.client()
    await accounts.policy(other_day, emi_date=16)
    lapsed = await accounts.client()
    await accounts.policy(lapsed, emi_date=15, policy_status="expired")

    run = await run_emi_reminders(db, mailer, today=date(2025, 4, 14))

    assert run.due_date == date(2025, 4, 15)
    assert run.policies_found == 2
    assert run.emails_sent == 1
    assert run.emails_failed == 0
    assert run.users_notified == [holder.id]
    assert run.message == "EMI reminders processed: 1 sent, 0 failed"

    [message] = mailer.sent
    assert message.to == [holder.email]
    assert message.subject == "EMI Payment Reminder - ₹3,500.50 Due Tomorrow"
    assert "Kavita Iyer" in message.html
    assert "Health First" in message.html and "Motor Guard" in message.html
    assert "₹2,500.50" in message.text
    assert message.tags == {"category": "emi_reminder"}


async def test_run_counts_failed_sends_and_continues(db, accounts, mailer):
    failing = await accounts.client()
    working = await accounts.client()
    await accounts.policy(failing, emi_date=10)
    await accounts.policy(working, emi_date=10)
    mailer.fail_for.add(failing.email)

    run = await run_emi_reminders(db, mailer, today=date(2025, 6, 9))

    assert run.policies_found == 2
    assert run.emails_sent == 1
    assert run.emails_failed == 1
    assert run.users_notified == [working.id]


async def test_run_with_nothing_due(db, accounts, mailer):
    user = await accounts.client()
    await accounts.policy(user, emi_date=3)
    run = await run_emi_reminders(db, mailer, today=date(2025, 6, 20))
    assert run.policies_found == 0
    assert run.message == "No EMI reminders to send"
    assert mailer.sent == []


async def test_month_end_covers_missing_days(db, accounts, mailer):
    user = await accounts.client()
    await accounts.policy(user, emi_date=31)
    run = await run_emi_reminders(db, mailer, today=date(2025, 4, 29))
    assert run.due_date == date(2025, 4, 30)
    assert run.policies_found == 1
    assert run.emails_sent == 1


async def test_reminder_endpoint_is_admin_only(client, accounts, mailer):
    admin = await accounts.admin()
    agent = await accounts.agent()
    user = await accounts.client()
    tomorrow = date.today() + timedelta(days=1)
    await accounts.policy(user, emi_date=tomorrow.day)

    assert (await client.post("/api/v1/reminders/emi/run", headers=agent.headers)).status_code == 403

    resp = await client.post("/api/v1/reminders/emi/run", headers=admin.headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["due_date"] == tomorrow.isoformat()
    assert body["policies_found"] == 1
    assert body["emails_sent"] == 1
    assert body["users_notified"] == [str(user.id)]
    assert len(mailer.sent) == 1
