"""
Service layer: business workflows over the repositories.

Services receive the AsyncSession explicitly, raise domain errors from
``insurtrack.core.errors`` and leave commit/rollback to the caller.
"""
