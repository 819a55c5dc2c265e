from sqlalchemy import func, select

from insurtrack.core.constants import AppRole
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import users as user_repository
from scripts import seed_users


async def test_seed_creates_demo_accounts_and_is_rerunnable(session_factory, monkeypatch):
    monkeypatch.setattr(seed_users, "async_session", session_factory)

    await seed_users.seed()
    await seed_users.seed()

    async with session_factory() as db:
        admin = await user_repository.get_user_by_email(db, "admin1@example.com")
        assert await user_repository.get_user_role(db, admin.id) == AppRole.ADMIN

        agent = await agent_repository.get_agent_by_code(db, "AGT-001")
        client = await user_repository.get_user_by_email(db, "user1@example.com")
        assignment = await agent_repository.get_assignment_for_client(db, client.id)
        assert assignment.agent_id == agent.id

        policies = await db.scalar(
            select(func.count()).select_from(InsurancePolicy).where(InsurancePolicy.user_id == client.id)
        )
        assert policies == 2


async def test_seed_skips_agent_when_email_is_taken(session_factory, monkeypatch):
    monkeypatch.setattr(seed_users, "async_session", session_factory)
    async with session_factory() as db:
        await user_repository.create_account(
            db, email="agent1@example.com", password="agent123", full_name="Not An Agent"
        )
        await db.commit()

    await seed_users.seed()

    async with session_factory() as db:
        assert await agent_repository.get_agent_by_code(db, "AGT-001") is None
        client = await user_repository.get_user_by_email(db, "user1@example.com")
        assert client is not None
        assert await agent_repository.get_assignment_for_client(db, client.id) is None
