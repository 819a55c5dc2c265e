"""
Row-level security session helpers.

On Postgres with ``RLS_ENABLED``, each API request switches its
transaction to the low-privilege ``RLS_SESSION_ROLE`` and publishes the
caller's id in ``app.current_user_id``; the policies installed by the
``0002_row_level_security`` migration read that setting.  Privileged
provisioning code calls ``use_service_role`` to drop back to the owner
role for the rest of the transaction.

On any other backend (SQLite in tests) these are no-ops and the
application-level scopes in ``insurtrack.core.access`` apply alone.
"""

from __future__ import annotations

import uuid

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from insurtrack.core.config import settings
from insurtrack.core.logging import get_logger

logger = get_logger(__name__)


def _rls_active(db: AsyncSession) -> bool:
    bind = db.bind
    return settings.RLS_ENABLED and bind is not None and bind.dialect.name == "postgresql"


async def bind_request_user(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Scope the current transaction to ``user_id`` under RLS."""
    if not _rls_active(db):
        return
    await db.execute(
        text("SELECT set_config('app.current_user_id', :uid, true)"),
        {"uid": str(user_id)},
    )
    await db.execute(text(f'SET LOCAL ROLE "{settings.RLS_SESSION_ROLE}"'))


async def use_service_role(db: AsyncSession) -> None:
    """Leave the RLS role for privileged operations (account provisioning, jobs)."""
    if not _rls_active(db):
        return
    await db.execute(text("RESET ROLE"))
    logger.debug("Session elevated to service role")
