from datetime import date
from decimal import Decimal

import pytest

from insurtrack.services.dashboards import due_label, ordinal


@pytest.mark.parametrize(
    ("day", "expected"),
    [(1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"), (12, "12th"),
     (13, "13th"), (21, "21st"), (22, "22nd"), (23, "23rd"), (30, "30th"), (31, "31st")],
)
def test_ordinal(day, expected):
    assert ordinal(day) == expected


def test_due_label():
    assert due_label(5) == "Due on 5th"
    assert due_label(None) == "Due monthly"


async def test_client_dashboard(client, accounts):
    user = await accounts.client()
    health = await accounts.policy(
        user, insurance_type="health", coverage_amount=Decimal("500000"),
        monthly_emi=Decimal("1000"), emi_date=15,
    )
    await accounts.policy(
        user, insurance_type="life", coverage_amount=Decimal("1000000"),
        monthly_emi=Decimal("2000"), emi_date=1,
    )
    await accounts.policy(
        user, insurance_type="vehicle", policy_status="expired",
        coverage_amount=Decimal("300000"), monthly_emi=Decimal("500"),
    )
    today = date.today()
    await client.post(
        f"/api/v1/policies/{health.id}/payments",
        json={"payment_month": today.month, "payment_year": today.year},
        headers=user.headers,
    )

    resp = await client.get("/api/v1/dashboard/client", headers=user.headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_policies"] == 3
    assert body["active_policies"] == 2
    assert Decimal(body["total_coverage"]) == Decimal("1500000")
    assert Decimal(body["monthly_premium"]) == Decimal("3500")
    assert set(body["policies_by_type"]) == {"life", "health", "vehicle", "house"}
    assert body["policies_by_type"]["house"] == []
    assert len(body["policies_by_type"]["vehicle"]) == 1

    reminders = {r["policy"]["insurance_type"]: r for r in body["premium_reminders"]}
    assert set(reminders) == {"health", "life"}
    assert reminders["health"]["is_paid"] is True
    assert reminders["health"]["due_label"] == "Due on 15th"
    assert reminders["life"]["is_paid"] is False
    assert reminders["life"]["due_label"] == "Due on 1st"


async def test_client_dashboard_empty(client, accounts):
    user = await accounts.client()
    body = (await client.get("/api/v1/dashboard/client", headers=user.headers)).json()
    assert body["total_policies"] == 0
    assert Decimal(body["total_coverage"]) == 0
    assert body["premium_reminders"] == []


async def test_agent_dashboard(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent(agent_code="AGT-888", commission_rate="10", full_name="Rohit Agent")
    active = await accounts.client(agent=agent)
    lapsed = await accounts.client(agent=agent)
    sold = await accounts.policy(active, agent=agent, coverage_amount=Decimal("750000"),
                                 premium_amount=Decimal("15000"))
    await accounts.policy(lapsed, policy_status="expired", coverage_amount=Decimal("90000"))
    await client.post("/api/v1/commissions/", json={"policy_id": str(sold.id)}, headers=admin.headers)

    resp = await client.get("/api/v1/dashboard/agent", headers=agent.headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["agent_code"] == "AGT-888"
    assert body["full_name"] == "Rohit Agent"
    assert body["total_clients"] == 2
    assert body["active_clients"] == 1
    assert body["expired_clients"] == 1
    assert Decimal(body["total_coverage"]) == Decimal("750000")
    assert Decimal(body["total_commission"]) == Decimal("1500.00")
    assert Decimal(body["pending_commission"]) == Decimal("1500.00")


async def test_admin_dashboard(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent()
    await accounts.agent(is_active=False)
    user = await accounts.client(agent=agent)
    await accounts.client()
    await accounts.policy(user)

    body = (await client.get("/api/v1/dashboard/admin", headers=admin.headers)).json()
    assert body == {
        "total_agents": 2,
        "active_agents": 1,
        "total_clients": 2,
        "total_assignments": 1,
        "total_policies": 1,
    }


async def test_dashboards_are_role_gated(client, accounts):
    agent = await accounts.agent()
    user = await accounts.client()
    assert (await client.get("/api/v1/dashboard/client", headers=agent.headers)).status_code == 403
    assert (await client.get("/api/v1/dashboard/agent", headers=user.headers)).status_code == 403
    assert (await client.get("/api/v1/dashboard/admin", headers=agent.headers)).status_code == 403
