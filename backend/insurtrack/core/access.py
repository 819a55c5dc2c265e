"""
Application-level row access rules.

Mirrors the Postgres row-level-security policies installed by the
``0002_row_level_security`` migration so the same rules hold on every
backend:

    profiles            self · admin · agent of an assigned client
    user_roles          self (read) · admin
    agents              any authenticated (read) · admin (write)
    agent_clients       agent own · client own · admin
    insurance_policies  owner CRUD · agent read/insert/update for assigned
                        clients · admin all
    premium_payments    owner read/insert · agent read of clients · admin all
    policy_commissions  agent own (read) · admin all

Query scopes take a ``Select`` and return it narrowed for the principal.
Predicates that need the database are async and take the session.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import Select, false, select
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.constants import AppRole
from insurtrack.core.errors import PermissionDeniedError
from insurtrack.db.models.agent_client import AgentClient
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.db.models.policy_commission import PolicyCommission
from insurtrack.db.models.premium_payment import PremiumPayment


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as seen by access checks."""

    user_id: uuid.UUID
    email: str
    role: AppRole
    agent_id: uuid.UUID | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == AppRole.ADMIN

    @property
    def is_agent(self) -> bool:
        return self.role == AppRole.AGENT and self.agent_id is not None

    @property
    def is_client(self) -> bool:
        return self.role == AppRole.USER


def assigned_client_ids(agent_id: uuid.UUID | None):
    """Subquery of client ids assigned to ``agent_id``."""
    return select(AgentClient.client_id).where(AgentClient.agent_id == agent_id)


# ─── Query scopes ─────────────────────────────
def scope_policies(stmt: Select, principal: Principal) -> Select:
    if principal.is_admin:
        return stmt
    if principal.is_agent:
        return stmt.where(InsurancePolicy.user_id.in_(assigned_client_ids(principal.agent_id)))
    return stmt.where(InsurancePolicy.user_id == principal.user_id)


def scope_payments(stmt: Select, principal: Principal) -> Select:
    if principal.is_admin:
        return stmt
    if principal.is_agent:
        return stmt.where(PremiumPayment.user_id.in_(assigned_client_ids(principal.agent_id)))
    return stmt.where(PremiumPayment.user_id == principal.user_id)


def scope_commissions(stmt: Select, principal: Principal) -> Select:
    if principal.is_admin:
        return stmt
    if principal.is_agent:
        return stmt.where(PolicyCommission.agent_id == principal.agent_id)
    # Clients have no visibility into commissions.
    return stmt.where(false())


def scope_assignments(stmt: Select, principal: Principal) -> Select:
    if principal.is_admin:
        return stmt
    if principal.is_agent:
        return stmt.where(AgentClient.agent_id == principal.agent_id)
    return stmt.where(AgentClient.client_id == principal.user_id)


# ─── Predicates ───────────────────────────────
async def is_assigned(db: AsyncSession, agent_id: uuid.UUID | None, client_id: uuid.UUID) -> bool:
    """True when ``client_id`` is assigned to ``agent_id``."""
    if agent_id is None:
        return False
    stmt = select(AgentClient.id).where(
        AgentClient.agent_id == agent_id,
        AgentClient.client_id == client_id,
    )
    result = await db.execute(stmt)
    return result.first() is not None


async def can_view_owner(db: AsyncSession, principal: Principal, owner_id: uuid.UUID) -> bool:
    """Visibility of rows owned by ``owner_id`` (profiles, policies, payments)."""
    if principal.is_admin or principal.user_id == owner_id:
        return True
    if principal.is_agent:
        return await is_assigned(db, principal.agent_id, owner_id)
    return False


async def resolve_policy_agent(
    db: AsyncSession,
    principal: Principal,
    owner_id: uuid.UUID,
    requested_agent_id: uuid.UUID | None = None,
) -> uuid.UUID | None:
    """
    Decide the ``agent_id`` a new policy for ``owner_id`` is written with.

    Raises PermissionDeniedError when the principal may not create it.
    """
    if principal.is_admin:
        return requested_agent_id
    if principal.is_agent:
        if not await is_assigned(db, principal.agent_id, owner_id):
            raise PermissionDeniedError(
                "Agents can only add policies for their assigned clients",
                details={"client_id": str(owner_id)},
            )
        return principal.agent_id
    if principal.user_id != owner_id:
        raise PermissionDeniedError("You can only add policies to your own account")
    return None


async def ensure_can_modify_policy(
    db: AsyncSession,
    principal: Principal,
    policy: InsurancePolicy,
    *,
    deleting: bool = False,
) -> None:
    """Owner and admin may update or delete; the managing agent may update."""
    if principal.is_admin or policy.user_id == principal.user_id:
        return
    if (
        not deleting
        and principal.is_agent
        and policy.agent_id == principal.agent_id
        and await is_assigned(db, principal.agent_id, policy.user_id)
    ):
        return
    raise PermissionDeniedError(
        "You do not have permission to modify this policy",
        details={"policy_id": str(policy.id)},
    )


def ensure_can_record_payment(principal: Principal, policy: InsurancePolicy) -> None:
    """Only the policy owner or an admin may record a premium payment."""
    if principal.is_admin or policy.user_id == principal.user_id:
        return
    raise PermissionDeniedError(
        "Only the policy holder can record premium payments",
        details={"policy_id": str(policy.id)},
    )


def require_role(principal: Principal, *roles: AppRole) -> None:
    """Raise PermissionDeniedError unless the principal holds one of ``roles``."""
    if principal.role not in roles:
        raise PermissionDeniedError(
            "Access denied",
            details={"required": [r.value for r in roles], "role": principal.role.value},
        )
