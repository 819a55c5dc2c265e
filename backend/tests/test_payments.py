from datetime import date
from decimal import Decimal

from insurtrack.core.access import Principal
from insurtrack.services import payments as payment_service


async def test_record_payment_uses_monthly_emi(client, accounts):
    user = await accounts.client()
    policy = await accounts.policy(user, monthly_emi=Decimal("1499.50"))
    resp = await client.post(
        f"/api/v1/policies/{policy.id}/payments",
        json={"payment_month": 3, "payment_year": 2025, "payment_method": "upi", "transaction_id": "TXN-1"},
        headers=user.headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert Decimal(body["amount"]) == Decimal("1499.50")
    assert body["user_id"] == str(user.id)
    assert body["payment_method"] == "upi"


async def test_payment_falls_back_to_premium(client, accounts):
    user = await accounts.client()
    policy = await accounts.policy(user, monthly_emi=None, premium_amount=Decimal("24000"))
    resp = await client.post(
        f"/api/v1/policies/{policy.id}/payments",
        json={"payment_month": 1, "payment_year": 2025},
        headers=user.headers,
    )
    assert resp.status_code == 201
    assert Decimal(resp.json()["amount"]) == Decimal("24000")


async def test_same_month_cannot_be_paid_twice(client, accounts):
    user = await accounts.client()
    policy = await accounts.policy(user)
    url = f"/api/v1/policies/{policy.id}/payments"
    first = await client.post(url, json={"payment_month": 5, "payment_year": 2025}, headers=user.headers)
    second = await client.post(url, json={"payment_month": 5, "payment_year": 2025}, headers=user.headers)
    assert first.status_code == 201
    assert second.status_code == 409


async def test_payment_rejected_for_inactive_policy(client, accounts):
    user = await accounts.client()
    policy = await accounts.policy(user, policy_status="expired")
    resp = await client.post(
        f"/api/v1/policies/{policy.id}/payments",
        json={"payment_month": 5, "payment_year": 2025},
        headers=user.headers,
    )
    assert resp.status_code == 400


async def test_invalid_month_rejected(client, accounts):
    user = await accounts.client()
    policy = await accounts.policy(user)
    resp = await client.post(
        f"/api/v1/policies/{policy.id}/payments",
        json={"payment_month": 13, "payment_year": 2025},
        headers=user.headers,
    )
    assert resp.status_code == 422


async def test_agent_cannot_record_payment_for_client(client, accounts):
    agent = await accounts.agent()
    user = await accounts.client(agent=agent)
    policy = await accounts.policy(user, agent=agent)
    resp = await client.post(
        f"/api/v1/policies/{policy.id}/payments",
        json={"payment_month": 5, "payment_year": 2025},
        headers=agent.headers,
    )
    assert resp.status_code == 403

    # Agents can still read the history.
    history = await client.get(f"/api/v1/policies/{policy.id}/payments", headers=agent.headers)
    assert history.status_code == 200


async def test_payment_status_for_month(client, accounts):
    user = await accounts.client()
    policy = await accounts.policy(user)
    url = f"/api/v1/policies/{policy.id}/payments"
    for month in range(1, 9):
        await client.post(url, json={"payment_month": month, "payment_year": 2025}, headers=user.headers)

    paid = await client.get(f"{url}/status?month=4&year=2025", headers=user.headers)
    assert paid.status_code == 200
    body = paid.json()
    assert body["is_paid"] is True
    assert len(body["recent_payments"]) == 6
    assert [p["payment_month"] for p in body["recent_payments"]] == [8, 7, 6, 5, 4, 3]

    unpaid = await client.get(f"{url}/status?month=12&year=2025", headers=user.headers)
    assert unpaid.json()["is_paid"] is False


async def test_payment_status_defaults_to_current_month(db, accounts):
    user = await accounts.client()
    policy = await accounts.policy(user)
    principal = Principal(user_id=user.id, email=user.email, role=user.role)

    status = await payment_service.payment_status(db, principal, policy.id, today=date(2025, 2, 14))
    assert (status.month, status.year) == (2, 2025)
    assert status.is_paid is False
    assert status.recent_payments == []


async def test_payments_of_other_client_are_hidden(client, accounts):
    user = await accounts.client()
    other = await accounts.client()
    policy = await accounts.policy(other)
    resp = await client.get(f"/api/v1/policies/{policy.id}/payments", headers=user.headers)
    assert resp.status_code == 404
