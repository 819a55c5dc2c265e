from decimal import Decimal

from sqlalchemy import select

from conftest import PASSWORD
from insurtrack.db.models.user_role import UserRole
from insurtrack.repositories import users as user_repository
from insurtrack.services import agents as agent_service


async def test_admin_creates_agent(client, accounts):
    admin = await accounts.admin()
    resp = await client.post(
        "/api/v1/agents/",
        json={
            "email": "neha.agent@example.com",
            "password": PASSWORD,
            "full_name": "Neha Verma",
            "agent_code": "AGT-900",
            "commission_rate": "12.5",
        },
        headers=admin.headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["agent_code"] == "AGT-900"
    assert Decimal(body["commission_rate"]) == Decimal("12.5")
    assert body["is_active"] is True

    login = await client.post(
        "/api/v1/auth/login", json={"email": "neha.agent@example.com", "password": PASSWORD}
    )
    assert login.status_code == 200
    assert login.json()["role"] == "agent"


async def test_create_agent_writes_one_role_row_and_profile(db):
    agent = await agent_service.create_agent(
        db,
        email="Ravi.Agent@example.com",
        password=PASSWORD,
        full_name="  Ravi Kumar ",
        agent_code="AGT-777",
        commission_rate=9,
    )

    roles = (await db.execute(select(UserRole).where(UserRole.user_id == agent.user_id))).scalars().all()
    assert [r.role for r in roles] == ["agent"]
    profile = await user_repository.get_profile(db, agent.user_id)
    assert profile.full_name == "Ravi Kumar"
    assert profile.email == "ravi.agent@example.com"
    assert agent.commission_rate == Decimal("9")


async def test_agent_code_must_be_unique(client, accounts):
    admin = await accounts.admin()
    await accounts.agent(agent_code="AGT-DUP")
    resp = await client.post(
        "/api/v1/agents/",
        json={
            "email": "second@example.com",
            "password": PASSWORD,
            "full_name": "Second Agent",
            "agent_code": "AGT-DUP",
        },
        headers=admin.headers,
    )
    assert resp.status_code == 409


async def test_commission_rate_bounds(client, accounts):
    admin = await accounts.admin()
    resp = await client.post(
        "/api/v1/agents/",
        json={
            "email": "greedy@example.com",
            "password": PASSWORD,
            "full_name": "Greedy Agent",
            "agent_code": "AGT-101",
            "commission_rate": "150",
        },
        headers=admin.headers,
    )
    assert resp.status_code == 422


async def test_only_admin_manages_agents(client, accounts):
    agent = await accounts.agent()
    user = await accounts.client()
    for account in (agent, user):
        assert (await client.get("/api/v1/agents/", headers=account.headers)).status_code == 403


async def test_list_agents_with_profiles_and_filter(client, accounts):
    admin = await accounts.admin()
    await accounts.agent(full_name="Active Agent")
    await accounts.agent(full_name="Retired Agent", is_active=False)

    everyone = await client.get("/api/v1/agents/", headers=admin.headers)
    assert {a["full_name"] for a in everyone.json()} == {"Active Agent", "Retired Agent"}

    active = await client.get("/api/v1/agents/?is_active=true", headers=admin.headers)
    assert [a["full_name"] for a in active.json()] == ["Active Agent"]


async def test_deactivate_agent(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent()
    resp = await client.patch(
        f"/api/v1/agents/{agent.agent_id}/status", json={"is_active": False}, headers=admin.headers
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False


async def test_verify_agent_code(client, accounts):
    agent = await accounts.agent(agent_code="AGT-555", full_name="Karan Mehta")
    inactive = await accounts.agent(agent_code="AGT-556", is_active=False)
    user = await accounts.client()

    ok = await client.get("/api/v1/agents/verify/AGT-555", headers=user.headers)
    assert ok.status_code == 200
    assert ok.json()["full_name"] == "Karan Mehta"
    assert ok.json()["id"] == str(agent.agent_id)

    assert (await client.get(f"/api/v1/agents/verify/{inactive.agent_code}", headers=user.headers)).status_code == 404
    assert (await client.get("/api/v1/agents/verify/NOPE", headers=user.headers)).status_code == 404


async def test_agent_reads_own_record(client, accounts):
    agent = await accounts.agent(agent_code="AGT-321")
    resp = await client.get("/api/v1/agents/me", headers=agent.headers)
    assert resp.status_code == 200
    assert resp.json()["agent_code"] == "AGT-321"


# ─── Onboarding ───────────────────────────────
async def test_agent_onboards_client(client, accounts):
    agent = await accounts.agent(agent_code="AGT-700")
    resp = await client.post(
        "/api/v1/agents/me/clients",
        json={
            "email": "new.client@example.com",
            "password": PASSWORD,
            "full_name": "Anil Rao",
            "age": 41,
            "gender": "male",
        },
        headers=agent.headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["assigned"] is True
    assert body["agent_code"] == "AGT-700"
    assert "AGT-700" in body["message"]

    # The new client can sign in through the client portal right away.
    login = await client.post(
        "/api/v1/auth/client/login",
        json={"email": "new.client@example.com", "password": PASSWORD, "agent_code": "AGT-700"},
    )
    assert login.status_code == 200

    profile = await client.get(f"/api/v1/profiles/{body['client_id']}", headers=agent.headers)
    assert profile.status_code == 200
    assert profile.json()["onboarded_by_agent"] == str(agent.agent_id)


async def test_onboarding_existing_email_conflicts(client, accounts):
    agent = await accounts.agent()
    existing = await accounts.client()
    resp = await client.post(
        "/api/v1/agents/me/clients",
        json={"email": existing.email, "password": PASSWORD, "full_name": "Copy Cat"},
        headers=agent.headers,
    )
    assert resp.status_code == 409


async def test_onboarding_blank_name_is_missing_field(client, accounts):
    agent = await accounts.agent()
    resp = await client.post(
        "/api/v1/agents/me/clients",
        json={"email": "blank@example.com", "password": PASSWORD, "full_name": "   "},
        headers=agent.headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required fields"


async def test_clients_cannot_onboard(client, accounts):
    user = await accounts.client()
    resp = await client.post(
        "/api/v1/agents/me/clients",
        json={"email": "x@example.com", "password": PASSWORD, "full_name": "Nope Nope"},
        headers=user.headers,
    )
    assert resp.status_code == 403


async def test_agent_client_list_splits_active_and_expired(client, accounts):
    agent = await accounts.agent()
    active = await accounts.client(agent=agent, full_name="Active Client")
    expired = await accounts.client(agent=agent, full_name="Lapsed Client")
    await accounts.client(agent=agent, full_name="No Policies")
    await accounts.policy(active)
    await accounts.policy(expired, policy_status="expired")
    await accounts.policy(expired, policy_status="cancelled")

    resp = await client.get("/api/v1/agents/me/clients", headers=agent.headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [c["profile"]["full_name"] for c in body["active"]] == ["Active Client"]
    assert [c["profile"]["full_name"] for c in body["expired"]] == ["Lapsed Client"]
    assert len(body["all"]) == 3
    assert len(body["expired"][0]["policies"]) == 2
