"""
Domain-specific exception hierarchy.

All application exceptions inherit from InsurTrackError so callers can
catch broadly or narrowly as needed.  Each exception carries a
user-facing message plus structured ``details`` for logging.
The API layer maps them to HTTP status codes in ``insurtrack.main``.
"""

from __future__ import annotations


class InsurTrackError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 400

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainValidationError(InsurTrackError):
    """Input passed schema validation but violates a business rule."""

    status_code = 400


class AuthenticationError(InsurTrackError):
    """Credentials, tokens or login portal checks failed."""

    status_code = 401


class PermissionDeniedError(InsurTrackError):
    """The caller's role or ownership does not allow the action."""

    status_code = 403


class NotFoundError(InsurTrackError):
    """A requested row does not exist or is not visible to the caller."""

    status_code = 404


class ConflictError(InsurTrackError):
    """A uniqueness rule would be violated (duplicate e-mail, payment, ...)."""

    status_code = 409


class StorageError(InsurTrackError):
    """Object storage operation (S3/MinIO) failed."""

    status_code = 502


class EmailDeliveryError(InsurTrackError):
    """The transactional e-mail provider rejected or failed a send."""

    status_code = 502
