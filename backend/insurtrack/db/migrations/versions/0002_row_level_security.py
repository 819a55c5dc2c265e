"""row level security: request role, helper functions and table policies

Revision ID: 0002_row_level_security
Revises: 0001_initial_schema
Create Date: 2025-10-29 14:36:41

API sessions run ``SET LOCAL ROLE insurtrack_authenticated`` and publish
the caller in ``app.current_user_id`` (see ``insurtrack.db.rls``).
The table owner is not subject to these policies, which is what the
provisioning code and the reminder job rely on.
"""
from typing import Sequence, Union

from alembic import op

revision: str = "0002_row_level_security"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE = "insurtrack_authenticated"

TABLES = (
    "users",
    "profiles",
    "user_roles",
    "agents",
    "agent_clients",
    "insurance_policies",
    "premium_payments",
    "policy_commissions",
)

CURRENT_AGENT_IDS = "SELECT a.id FROM agents a WHERE a.user_id = app_current_user_id()"

ASSIGNED_CLIENT_IDS = (
    "SELECT ac.client_id FROM agent_clients ac "
    "JOIN agents a ON a.id = ac.agent_id "
    "WHERE a.user_id = app_current_user_id()"
)

# (table, policy name, command, USING, WITH CHECK)
POLICIES = (
    # users: own row only; account creation runs as the owner role
    ("users", "users_self_select", "SELECT", "id = app_current_user_id()", None),
    ("users", "users_self_update", "UPDATE", "id = app_current_user_id()", None),
    ("users", "users_admin_select", "SELECT", "has_role(app_current_user_id(), 'admin')", None),
    # profiles
    ("profiles", "profiles_self_select", "SELECT", "id = app_current_user_id()", None),
    ("profiles", "profiles_self_update", "UPDATE", "id = app_current_user_id()", None),
    ("profiles", "profiles_self_insert", "INSERT", None, "id = app_current_user_id()"),
    ("profiles", "profiles_admin_select", "SELECT", "has_role(app_current_user_id(), 'admin')", None),
    ("profiles", "profiles_agent_select", "SELECT", f"id IN ({ASSIGNED_CLIENT_IDS})", None),
    # user_roles
    ("user_roles", "user_roles_self_select", "SELECT", "user_id = app_current_user_id()", None),
    ("user_roles", "user_roles_admin_all", "ALL", "has_role(app_current_user_id(), 'admin')", None),
    # agents
    ("agents", "agents_authenticated_select", "SELECT", "app_current_user_id() IS NOT NULL", None),
    ("agents", "agents_admin_all", "ALL", "has_role(app_current_user_id(), 'admin')", None),
    # agent_clients
    ("agent_clients", "agent_clients_agent_select", "SELECT", f"agent_id IN ({CURRENT_AGENT_IDS})", None),
    ("agent_clients", "agent_clients_client_select", "SELECT", "client_id = app_current_user_id()", None),
    ("agent_clients", "agent_clients_admin_all", "ALL", "has_role(app_current_user_id(), 'admin')", None),
    # insurance_policies
    ("insurance_policies", "policies_owner_all", "ALL", "user_id = app_current_user_id()",
     "user_id = app_current_user_id()"),
    ("insurance_policies", "policies_agent_select", "SELECT", f"user_id IN ({ASSIGNED_CLIENT_IDS})", None),
    ("insurance_policies", "policies_agent_insert", "INSERT", None,
     f"has_role(app_current_user_id(), 'agent') AND agent_id IN ({CURRENT_AGENT_IDS}) "
     f"AND user_id IN ({ASSIGNED_CLIENT_IDS})"),
    ("insurance_policies", "policies_agent_update", "UPDATE",
     f"has_role(app_current_user_id(), 'agent') AND agent_id IN ({CURRENT_AGENT_IDS}) "
     f"AND user_id IN ({ASSIGNED_CLIENT_IDS})", None),
    ("insurance_policies", "policies_admin_all", "ALL", "has_role(app_current_user_id(), 'admin')", None),
    # premium_payments
    ("premium_payments", "payments_owner_select", "SELECT", "user_id = app_current_user_id()", None),
    ("premium_payments", "payments_owner_insert", "INSERT", None, "user_id = app_current_user_id()"),
    ("premium_payments", "payments_agent_select", "SELECT", f"user_id IN ({ASSIGNED_CLIENT_IDS})", None),
    ("premium_payments", "payments_admin_all", "ALL", "has_role(app_current_user_id(), 'admin')", None),
    # policy_commissions
    ("policy_commissions", "commissions_agent_select", "SELECT",
     f"agent_id IN ({CURRENT_AGENT_IDS})", None),
    ("policy_commissions", "commissions_admin_all", "ALL", "has_role(app_current_user_id(), 'admin')", None),
)


def upgrade() -> None:
    op.execute(
        f"""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = '{ROLE}') THEN
                CREATE ROLE {ROLE} NOLOGIN;
            END IF;
        END
        $$;
        """
    )
    op.execute(f"GRANT {ROLE} TO CURRENT_USER")
    op.execute(f"GRANT USAGE ON SCHEMA public TO {ROLE}")
    op.execute(f"GRANT SELECT, INSERT, UPDATE, DELETE ON ALL TABLES IN SCHEMA public TO {ROLE}")

    op.execute(
        """
        CREATE OR REPLACE FUNCTION app_current_user_id()
        RETURNS uuid
        LANGUAGE sql
        STABLE
        AS $$
            SELECT NULLIF(current_setting('app.current_user_id', true), '')::uuid
        $$;
        """
    )
    op.execute(
        """
        CREATE OR REPLACE FUNCTION has_role(_user_id uuid, _role text)
        RETURNS boolean
        LANGUAGE sql
        STABLE
        SECURITY DEFINER
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM user_roles WHERE user_id = _user_id AND role = _role
            )
        $$;
        """
    )

    for table in TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")

    for table, name, command, using, check in POLICIES:
        sql = f"CREATE POLICY {name} ON {table} FOR {command}"
        if using:
            sql += f" USING ({using})"
        if check:
            sql += f" WITH CHECK ({check})"
        op.execute(sql)


def downgrade() -> None:
    for table, name, *_ in reversed(POLICIES):
        op.execute(f"DROP POLICY IF EXISTS {name} ON {table}")
    for table in TABLES:
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

    op.execute("DROP FUNCTION IF EXISTS has_role(uuid, text)")
    op.execute("DROP FUNCTION IF EXISTS app_current_user_id()")
    op.execute(f"REVOKE ALL ON ALL TABLES IN SCHEMA public FROM {ROLE}")
    op.execute(f"REVOKE USAGE ON SCHEMA public FROM {ROLE}")
