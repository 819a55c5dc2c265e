import re

from insurtrack.services.accounts import (
    CLIENT_PORTAL_ONLY,
    INVALID_AGENT_CODE,
    INVALID_CREDENTIALS,
    NO_AGENT_ASSIGNED,
    STAFF_PORTAL_ONLY,
)

from conftest import PASSWORD


def _reset_token(message) -> str:
    match = re.search(r"token=([A-Za-z0-9_\-.]+)", message.text)
    assert match, message.text
    return match.group(1)


async def test_signup_creates_client_and_returns_token(client):
    resp = await client.post(
        "/api/v1/auth/signup",
        json={"email": "Meera@Example.com", "password": PASSWORD, "full_name": "Meera Shah", "age": 34},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["role"] == "user"
    assert body["token_type"] == "bearer"

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    data = me.json()
    assert data["email"] == "meera@example.com"
    assert data["role"] == "user"
    assert data["profile"]["full_name"] == "Meera Shah"
    assert data["profile"]["age"] == 34


async def test_signup_duplicate_email_conflicts(client, accounts):
    existing = await accounts.client()
    resp = await client.post(
        "/api/v1/auth/signup",
        json={"email": existing.email, "password": PASSWORD, "full_name": "Someone Else"},
    )
    assert resp.status_code == 409


async def test_signup_short_password_rejected(client):
    resp = await client.post(
        "/api/v1/auth/signup",
        json={"email": "short@example.com", "password": "123", "full_name": "Short Pw"},
    )
    assert resp.status_code == 422


async def test_bootstrap_admin_email_gets_admin_role(client):
    resp = await client.post(
        "/api/v1/auth/signup",
        json={"email": "admin1@example.com", "password": PASSWORD, "full_name": "Root Admin"},
    )
    assert resp.status_code == 201
    assert resp.json()["role"] == "admin"


async def test_demo_client_receives_starter_policies(client):
    resp = await client.post(
        "/api/v1/auth/signup",
        json={"email": "user1@example.com", "password": PASSWORD, "full_name": "Demo Client"},
    )
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}
    policies = (await client.get("/api/v1/policies/", headers=headers)).json()
    assert policies["total"] == 2
    assert {p["insurance_type"] for p in policies["data"]} == {"life", "house"}


async def test_me_requires_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401


async def test_me_rejects_garbage_token(client):
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


# ─── Staff portal ─────────────────────────────
async def test_staff_login_for_admin_and_agent(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent()
    for account, role in ((admin, "admin"), (agent, "agent")):
        resp = await client.post("/api/v1/auth/login", json={"email": account.email, "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json()["role"] == role


async def test_staff_login_rejects_clients(client, accounts):
    user = await accounts.client()
    resp = await client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.json()["detail"] == STAFF_PORTAL_ONLY


async def test_login_wrong_password(client, accounts):
    admin = await accounts.admin()
    resp = await client.post("/api/v1/auth/login", json={"email": admin.email, "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == INVALID_CREDENTIALS


async def test_login_records_last_login(client, accounts):
    admin = await accounts.admin()
    resp = await client.post("/api/v1/auth/login", json={"email": admin.email, "password": PASSWORD})
    token = resp.json()["access_token"]
    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["last_login_at"] is not None


# ─── Client portal ────────────────────────────
async def test_client_login_with_assigned_agent_code(client, accounts):
    agent = await accounts.agent(agent_code="AGT-777")
    user = await accounts.client(agent=agent)
    resp = await client.post(
        "/api/v1/auth/client/login",
        json={"email": user.email, "password": PASSWORD, "agent_code": " AGT-777 "},
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "user"


async def test_client_login_wrong_agent_code(client, accounts):
    agent = await accounts.agent(agent_code="AGT-100")
    await accounts.agent(agent_code="AGT-200")
    user = await accounts.client(agent=agent)
    resp = await client.post(
        "/api/v1/auth/client/login",
        json={"email": user.email, "password": PASSWORD, "agent_code": "AGT-200"},
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == INVALID_AGENT_CODE


async def test_client_login_without_assignment(client, accounts):
    await accounts.agent(agent_code="AGT-300")
    user = await accounts.client()
    resp = await client.post(
        "/api/v1/auth/client/login",
        json={"email": user.email, "password": PASSWORD, "agent_code": "AGT-300"},
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == NO_AGENT_ASSIGNED


async def test_client_login_rejects_staff(client, accounts):
    agent = await accounts.agent(agent_code="AGT-400")
    resp = await client.post(
        "/api/v1/auth/client/login",
        json={"email": agent.email, "password": PASSWORD, "agent_code": "AGT-400"},
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == CLIENT_PORTAL_ONLY


# ─── Password reset ───────────────────────────
async def test_forgot_password_unknown_email_is_silent(client, mailer):
    resp = await client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})
    assert resp.status_code == 202
    assert mailer.sent == []


async def test_forgot_password_delivery_failure_still_accepted(client, accounts, mailer):
    user = await accounts.client()
    mailer.fail_all = True
    resp = await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
    assert resp.status_code == 202


async def test_password_reset_flow(client, accounts, mailer):
    user = await accounts.client(full_name="Ravi Kumar")
    resp = await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
    assert resp.status_code == 202
    assert len(mailer.sent) == 1
    message = mailer.sent[0]
    assert message.to == [user.email]
    assert "Ravi Kumar" in message.html
    token = _reset_token(message)

    mismatch = await client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "password": "newpass1", "confirm_password": "newpass2"},
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["detail"] == "Passwords don't match"

    ok = await client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "password": "newpass1", "confirm_password": "newpass1"},
    )
    assert ok.status_code == 200

    # The link is bound to the old password hash.
    reused = await client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "password": "another1", "confirm_password": "another1"},
    )
    assert reused.status_code == 401


async def test_reset_token_is_not_a_bearer_token(client, accounts, mailer):
    user = await accounts.client()
    await client.post("/api/v1/auth/forgot-password", json={"email": user.email})
    token = _reset_token(mailer.sent[0])
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_reset_password_invalid_token(client):
    resp = await client.post(
        "/api/v1/auth/reset-password",
        json={"token": "bogus", "password": "newpass1", "confirm_password": "newpass1"},
    )
    assert resp.status_code == 401
