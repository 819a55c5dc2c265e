"""
Models package — re-exports Base and all models.

Import models here so Alembic's `target_metadata = Base.metadata`
picks up every table automatically.

When adding a new model:
    1. Create `insurtrack/db/models/<table_name>.py`
    2. Import it here
"""

from insurtrack.db.models.base import Base
from insurtrack.db.models.user import User
from insurtrack.db.models.agent import Agent
from insurtrack.db.models.profile import Profile
from insurtrack.db.models.user_role import UserRole
from insurtrack.db.models.agent_client import AgentClient
from insurtrack.db.models.insurance_policy import InsurancePolicy
from insurtrack.db.models.premium_payment import PremiumPayment
from insurtrack.db.models.policy_commission import PolicyCommission

__all__ = [
    "Base",
    "User",
    "Agent",
    "Profile",
    "UserRole",
    "AgentClient",
    "InsurancePolicy",
    "PremiumPayment",
    "PolicyCommission",
]
