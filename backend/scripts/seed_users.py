"""
Seed demo accounts for development.
Run: python -m scripts.seed_users  (from backend/)

Creates an admin, one agent (code AGT-001) and a client assigned to that
agent who owns the two starter policies. Accounts that already exist are
skipped, so the script can be re-run.
"""

import asyncio

from insurtrack.core.errors import ConflictError
from insurtrack.core.logging import get_logger, setup_logging
from insurtrack.db.session import async_session
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import users as user_repository
from insurtrack.services import accounts as account_service
from insurtrack.services import agents as agent_service

logger = get_logger("scripts.seed_users")

ADMIN = {
    "email": "admin1@example.com",
    "password": "admin123",  # Change in production!
    "full_name": "System Admin",
}

AGENT = {
    "email": "agent1@example.com",
    "password": "agent123",
    "full_name": "Demo Agent",
    "agent_code": "AGT-001",
    "commission_rate": 10,
}

CLIENT = {
    "email": "user1@example.com",
    "password": "user123",
    "full_name": "Demo Client",
}


async def seed() -> None:
    async with async_session() as session:
        try:
            admin = await account_service.register(session, **ADMIN)
            logger.info("Seeded admin", email=admin.email)
        except ConflictError:
            logger.info("Admin already exists", email=ADMIN["email"])

        agent = await agent_repository.get_agent_by_code(session, AGENT["agent_code"])
        if agent is None:
            try:
                agent = await agent_service.create_agent(session, **AGENT)
                logger.info("Seeded agent", agent_code=agent.agent_code)
            except ConflictError:
                logger.warning(
                    "Agent e-mail belongs to an account without an agent record",
                    email=AGENT["email"],
                    agent_code=AGENT["agent_code"],
                )

        # register() gives the demo client address its starter policies.
        try:
            client = await account_service.register(session, **CLIENT)
            client_id = client.id
            logger.info("Seeded client", email=client.email)
        except ConflictError:
            existing = await user_repository.get_user_by_email(session, CLIENT["email"])
            client_id = existing.id
            logger.info("Client already exists", email=CLIENT["email"])

        if agent is None:
            logger.info("No demo agent, client left unassigned", email=CLIENT["email"])
        elif await agent_repository.get_assignment_for_client(session, client_id) is None:
            await agent_repository.assign_client(session, agent_id=agent.id, client_id=client_id)
            logger.info("Assigned client to agent", agent_code=agent.agent_code)

        await session.commit()
    logger.info("Seeding complete")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(seed())
