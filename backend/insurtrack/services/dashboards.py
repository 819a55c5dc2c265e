"""Aggregates behind the client, agent and admin dashboards."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.access import Principal
from insurtrack.core.constants import AppRole, PolicyStatus
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.repositories import agents as agent_repository
from insurtrack.repositories import payments as payment_repository
from insurtrack.repositories import policies as policy_repository
from insurtrack.repositories import users as user_repository
from insurtrack.services import agents as agent_service
from insurtrack.services import clients as client_service
from insurtrack.services import commissions as commission_service
from insurtrack.services.policies import group_by_type


def ordinal(day: int) -> str:
    """1 -> "1st", 12 -> "12th", 23 -> "23rd"."""
    if 3 < day < 21:
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def due_label(emi_date: int | None) -> str:
    return f"Due on {ordinal(emi_date)}" if emi_date else "Due monthly"


def _sum(values) -> Decimal:
    return sum((Decimal(v) for v in values if v is not None), Decimal("0"))


@dataclass
class PremiumReminder:
    policy: InsurancePolicy
    is_paid: bool
    due_label: str


@dataclass
class ClientDashboard:
    total_policies: int
    active_policies: int
    total_coverage: Decimal
    monthly_premium: Decimal
    grouped: dict[str, list[InsurancePolicy]]
    reminders: list[PremiumReminder] = field(default_factory=list)


@dataclass
class AgentDashboard:
    agent_code: str
    commission_rate: Decimal
    is_active: bool
    full_name: str | None
    total_clients: int
    active_clients: int
    expired_clients: int
    total_coverage: Decimal
    total_commission: Decimal
    pending_commission: Decimal


@dataclass
class AdminDashboard:
    total_agents: int
    active_agents: int
    total_clients: int
    total_assignments: int
    total_policies: int


async def client_dashboard(
    db: AsyncSession,
    principal: Principal,
    *,
    today: date | None = None,
) -> ClientDashboard:
    today = today or date.today()
    policies = await policy_repository.list_policies(db, user_id=principal.user_id)
    active = [p for p in policies if p.policy_status == PolicyStatus.ACTIVE]

    emi_policies = [p for p in active if p.monthly_emi and p.monthly_emi > 0]
    paid = await payment_repository.paid_policy_ids(
        db, [p.id for p in emi_policies], today.month, today.year
    )

    return ClientDashboard(
        total_policies=len(policies),
        active_policies=len(active),
        total_coverage=_sum(p.coverage_amount for p in active),
        monthly_premium=_sum(p.monthly_emi for p in policies),
        grouped=group_by_type(policies),
        reminders=[
            PremiumReminder(policy=p, is_paid=p.id in paid, due_label=due_label(p.emi_date))
            for p in emi_policies
        ],
    )


async def agent_dashboard(db: AsyncSession, principal: Principal) -> AgentDashboard:
    agent = await agent_service.get_own_agent(db, principal)
    profile = await user_repository.get_profile(db, agent.user_id)
    clients = await client_service.list_agent_clients(db, agent.id)
    totals = await commission_service.totals_for_agent(db, agent.id)

    coverage = _sum(
        p.coverage_amount
        for c in clients.all
        for p in c.policies
        if p.policy_status == PolicyStatus.ACTIVE
    )
    return AgentDashboard(
        agent_code=agent.agent_code,
        commission_rate=agent.commission_rate,
        is_active=agent.is_active,
        full_name=profile.full_name if profile else None,
        total_clients=len(clients.all),
        active_clients=len(clients.active),
        expired_clients=len(clients.expired),
        total_coverage=coverage,
        total_commission=totals.total,
        pending_commission=totals.pending,
    )


async def admin_dashboard(db: AsyncSession) -> AdminDashboard:
    agents = await agent_repository.list_agents(db)
    client_ids = await user_repository.list_user_ids_with_role(db, AppRole.USER)
    return AdminDashboard(
        total_agents=len(agents),
        active_agents=sum(1 for a in agents if a.is_active),
        total_clients=len(client_ids),
        total_assignments=await agent_repository.count_assignments(db),
        total_policies=await policy_repository.count_policies(db),
    )
