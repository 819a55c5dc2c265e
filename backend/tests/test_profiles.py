import pytest

from insurtrack.core.config import settings
from insurtrack.core.errors import DomainValidationError
from insurtrack.services import accounts as account_service


async def test_read_and_update_own_profile(client, accounts):
    user = await accounts.client(full_name="Old Name")
    resp = await client.put(
        "/api/v1/profiles/me",
        json={"full_name": "  New Name ", "age": 29, "gender": "female", "date_of_birth": "1996-02-29"},
        headers=user.headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["full_name"] == "New Name"
    assert body["gender"] == "female"
    assert body["date_of_birth"] == "1996-02-29"

    again = await client.get("/api/v1/profiles/me", headers=user.headers)
    assert again.json()["age"] == 29


async def test_partial_update_leaves_other_fields(client, accounts):
    user = await accounts.client(full_name="Keep Me")
    resp = await client.put("/api/v1/profiles/me", json={"age": 50}, headers=user.headers)
    assert resp.json()["full_name"] == "Keep Me"


async def test_profile_visibility(client, accounts):
    admin = await accounts.admin()
    agent = await accounts.agent()
    assigned = await accounts.client(agent=agent)
    stranger = await accounts.client()

    assert (await client.get(f"/api/v1/profiles/{assigned.id}", headers=agent.headers)).status_code == 200
    assert (await client.get(f"/api/v1/profiles/{stranger.id}", headers=agent.headers)).status_code == 404
    assert (await client.get(f"/api/v1/profiles/{stranger.id}", headers=assigned.headers)).status_code == 404
    assert (await client.get(f"/api/v1/profiles/{stranger.id}", headers=admin.headers)).status_code == 200


async def test_avatar_upload(client, accounts, avatar_store):
    user = await accounts.client()
    resp = await client.post(
        "/api/v1/profiles/me/avatar",
        files={"file": ("me.png", b"\x89PNG fake image", "image/png")},
        headers=user.headers,
    )
    assert resp.status_code == 200
    [key] = avatar_store.objects
    assert key.startswith(f"{user.id}/")
    assert key.endswith(".png")
    assert resp.json()["avatar_url"] == f"http://storage.local/avatars/{key}"


async def test_avatar_must_be_an_image(client, accounts, avatar_store):
    user = await accounts.client()
    resp = await client.post(
        "/api/v1/profiles/me/avatar",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=user.headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please upload an image file"
    assert avatar_store.objects == {}


async def test_avatar_size_limit(db, accounts, avatar_store):
    user = await accounts.client()
    too_big = b"x" * (settings.AVATAR_MAX_BYTES + 1)
    with pytest.raises(DomainValidationError, match="less than 5MB"):
        await account_service.upload_avatar(
            db, user.id, data=too_big, content_type="image/jpeg", store=avatar_store
        )
    with pytest.raises(DomainValidationError, match="empty"):
        await account_service.upload_avatar(
            db, user.id, data=b"", content_type="image/jpeg", store=avatar_store
        )
