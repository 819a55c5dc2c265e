"""
Shared fixtures: a throwaway SQLite database per test, the FastAPI app wired
to it, recording fakes for e-mail and avatar storage, and an account factory
that provisions admins, agents and clients through the service layer.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from insurtrack.api.deps import get_db, get_mailer, get_storage
from insurtrack.core.constants import AppRole
from insurtrack.core.errors import EmailDeliveryError
from insurtrack.db.models import Base
from insurtrack.main import app
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import policies as policy_repository
from insurtrack.repositories import users as user_repository
from insurtrack.services import accounts as account_service
from insurtrack.services import agents as agent_service
from insurtrack.services.email import EmailMessage

PASSWORD = "secret123"


# ─── Fakes ────────────────────────────────────
class FakeMailer:
    """Records every message; addresses in ``fail_for`` raise like a rejected send."""

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.fail_for: set[str] = set()
        self.fail_all = False

    async def send(self, message: EmailMessage) -> str:
        if self.fail_all or self.fail_for.intersection(message.to):
            raise EmailDeliveryError("Resend rejected the e-mail", details={"to": message.to})
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


class FakeAvatarStore:
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        self.objects[key] = (data, content_type)
        return f"http://storage.local/avatars/{key}"


# ─── Database ─────────────────────────────────
@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'insurtrack.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    """A session for service-level tests; callers commit when they need to."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def avatar_store():
    return FakeAvatarStore()


@pytest.fixture
async def client(session_factory, mailer, avatar_store):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: avatar_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()


# ─── Accounts ─────────────────────────────────
@dataclass
class Account:
    id: uuid.UUID
    email: str
    role: AppRole
    headers: dict[str, str] = field(default_factory=dict)
    agent_id: uuid.UUID | None = None
    agent_code: str | None = None


def _bearer(user, role: AppRole) -> dict[str, str]:
    issued = account_service.issue_token(user, role)
    return {"Authorization": f"Bearer {issued.access_token}"}


class AccountFactory:
    def __init__(self, sessions: async_sessionmaker):
        self._sessions = sessions
        self._count = 0

    def _next_email(self, prefix: str) -> str:
        self._count += 1
        return f"{prefix}-{self._count}@example.com"

    async def admin(self) -> Account:
        email = self._next_email("admin")
        async with self._sessions() as db:
            user = await account_service.register(db, email=email, password=PASSWORD, full_name="Asha Admin")
            await user_repository.replace_role(db, user.id, AppRole.ADMIN)
            await db.commit()
        return Account(user.id, email, AppRole.ADMIN, _bearer(user, AppRole.ADMIN))

    async def agent(
        self,
        *,
        agent_code: str | None = None,
        commission_rate: str = "10",
        is_active: bool = True,
        full_name: str = "Vikram Agent",
    ) -> Account:
        email = self._next_email("agent")
        code = agent_code or f"AGT-{self._count:03d}"
        async with self._sessions() as db:
            agent = await agent_service.create_agent(
                db,
                email=email,
                password=PASSWORD,
                full_name=full_name,
                agent_code=code,
                commission_rate=Decimal(commission_rate),
            )
            if not is_active:
                await agent_repository.set_active_status(db, agent.id, False)
            user = await user_repository.get_user_by_id(db, agent.user_id)
            await db.commit()
        return Account(
            user.id, email, AppRole.AGENT, _bearer(user, AppRole.AGENT),
            agent_id=agent.id, agent_code=code,
        )

    async def client(self, *, agent: Account | None = None, full_name: str = "Priya Client") -> Account:
        email = self._next_email("client")
        async with self._sessions() as db:
            user = await account_service.register(db, email=email, password=PASSWORD, full_name=full_name)
            if agent is not None:
                await agent_repository.assign_client(db, agent_id=agent.agent_id, client_id=user.id)
            await db.commit()
        return Account(user.id, email, AppRole.USER, _bearer(user, AppRole.USER))

    async def policy(self, owner: Account, *, agent: Account | None = None, **overrides):
        fields = {
            "policy_name": "Family Health Cover",
            "policy_provider": "Star Health",
            "policy_number": f"HLT-{uuid.uuid4().hex[:8]}",
            "insurance_type": "health",
            "policy_status": "active",
            "coverage_amount": Decimal("500000"),
            "premium_amount": Decimal("12000"),
            "monthly_emi": Decimal("1000"),
            "emi_date": 15,
            "start_date": date(2025, 1, 1),
            "end_date": date(2026, 1, 1),
        }
        fields.update(overrides)
        async with self._sessions() as db:
            policy = await policy_repository.create_policy(
                db,
                user_id=owner.id,
                agent_id=agent.agent_id if agent else None,
                **fields,
            )
            await db.commit()
        return policy


@pytest.fixture
def accounts(session_factory):
    return AccountFactory(session_factory)


@pytest.fixture
def policy_payload():
    def _payload(**overrides):
        data = {
            "policy_name": "Car Secure",
            "policy_provider": "ICICI Lombard",
            "policy_number": "VEH-2025-001",
            "insurance_type": "vehicle",
            "coverage_amount": "800000",
            "premium_amount": "18000",
            "monthly_emi": "1500",
            "emi_date": 7,
            "start_date": "2025-04-01",
            "end_date": "2026-03-31",
        }
        data.update(overrides)
        return data

    return _payload
