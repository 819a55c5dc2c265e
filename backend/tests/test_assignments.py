async def test_admin_assigns_and_unassigns(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent(agent_code="AGT-010", full_name="Sunil Agent")
    user = await accounts.client(full_name="Lata Client")

    resp = await client.post(
        "/api/v1/assignments/",
        json={"agent_id": str(agent.agent_id), "client_id": str(user.id)},
        headers=admin.headers,
    )
    assert resp.status_code == 201
    assignment_id = resp.json()["id"]

    listing = await client.get("/api/v1/assignments/", headers=admin.headers)
    [row] = listing.json()
    assert row["agent_code"] == "AGT-010"
    assert row["agent_name"] == "Sunil Agent"
    assert row["client_name"] == "Lata Client"
    assert row["client_email"] == user.email

    removed = await client.delete(f"/api/v1/assignments/{assignment_id}", headers=admin.headers)
    assert removed.status_code == 204
    assert (await client.get("/api/v1/assignments/", headers=admin.headers)).json() == []


async def test_duplicate_assignment_conflicts(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent()
    user = await accounts.client(agent=agent)
    resp = await client.post(
        "/api/v1/assignments/",
        json={"agent_id": str(agent.agent_id), "client_id": str(user.id)},
        headers=admin.headers,
    )
    assert resp.status_code == 409


async def test_cannot_assign_to_inactive_agent(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent(is_active=False)
    user = await accounts.client()
    resp = await client.post(
        "/api/v1/assignments/",
        json={"agent_id": str(agent.agent_id), "client_id": str(user.id)},
        headers=admin.headers,
    )
    assert resp.status_code == 400


async def test_only_client_accounts_can_be_assigned(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent()
    other_agent = await accounts.agent()
    resp = await client.post(
        "/api/v1/assignments/",
        json={"agent_id": str(agent.agent_id), "client_id": str(other_agent.id)},
        headers=admin.headers,
    )
    assert resp.status_code == 400


async def test_unknown_assignment_delete_is_not_found(client, accounts):
    admin = await accounts.admin()
    resp = await client.delete(
        "/api/v1/assignments/00000000-0000-0000-0000-000000000009", headers=admin.headers
    )
    assert resp.status_code == 404


async def test_assignment_listing_is_scoped(client, accounts):
    agent = await accounts.agent()
    other_agent = await accounts.agent()
    mine = await accounts.client(agent=agent)
    await accounts.client(agent=other_agent)

    agent_view = await client.get("/api/v1/assignments/", headers=agent.headers)
    assert [a["client_id"] for a in agent_view.json()] == [str(mine.id)]

    client_view = await client.get("/api/v1/assignments/", headers=mine.headers)
    assert [a["agent_id"] for a in client_view.json()] == [str(agent.agent_id)]


async def test_agents_cannot_assign(client, accounts):
    agent = await accounts.agent()
    user = await accounts.client()
    resp = await client.post(
        "/api/v1/assignments/",
        json={"agent_id": str(agent.agent_id), "client_id": str(user.id)},
        headers=agent.headers,
    )
    assert resp.status_code == 403


async def test_client_reads_own_assignment(client, accounts):
    agent = await accounts.agent(agent_code="AGT-042", full_name="Deepa Agent")
    user = await accounts.client(agent=agent)
    resp = await client.get("/api/v1/assignments/me", headers=user.headers)
    assert resp.status_code == 200
    assert resp.json()["agent_code"] == "AGT-042"
    assert resp.json()["agent_name"] == "Deepa Agent"

    loner = await accounts.client()
    missing = await client.get("/api/v1/assignments/me", headers=loner.headers)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "No agent assigned to this account"


# ─── Admin accounts ───────────────────────────
async def test_admin_lists_clients(client, accounts):
    admin = await accounts.admin()
    await accounts.agent()
    first = await accounts.client()
    second = await accounts.client()
    resp = await client.get("/api/v1/admin/clients", headers=admin.headers)
    assert resp.status_code == 200
    assert {p["id"] for p in resp.json()} == {str(first.id), str(second.id)}


async def test_admin_promotes_user(client, accounts):
    admin = await accounts.admin()
    user = await accounts.client()
    resp = await client.post("/api/v1/admin/promote", json={"email": user.email}, headers=admin.headers)
    assert resp.status_code == 200

    me = await client.get("/api/v1/auth/me", headers=user.headers)
    assert me.json()["role"] == "admin"


async def test_promote_unknown_email(client, accounts):
    admin = await accounts.admin()
    resp = await client.post(
        "/api/v1/admin/promote", json={"email": "ghost@example.com"}, headers=admin.headers
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No user found with this email"


async def test_admin_routes_reject_agents(client, accounts):
    agent = await accounts.agent()
    assert (await client.get("/api/v1/admin/clients", headers=agent.headers)).status_code == 403
