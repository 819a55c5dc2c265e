"""
Password hashing and JWT helpers.

Access tokens carry ``sub`` (user UUID), ``role`` and ``email``.
Password-reset tokens carry ``purpose="password_reset"`` and a fingerprint of
the current password hash, so a token stops working once the password changes.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from insurtrack.core.config import settings

PASSWORD_RESET_PURPOSE = "password_reset"


def hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(data: dict[str, Any], expires_minutes: int | None = None) -> str:
    """Sign an access token for the given claims."""
    minutes = expires_minutes or settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    to_encode = dict(data)
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Return the token payload, or None when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("purpose"):
        # Reset tokens are not valid bearer credentials.
        return None
    return payload


def _password_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def create_password_reset_token(user_id: str, password_hash: str) -> str:
    """Sign a single-use password reset token bound to the current hash."""
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    claims = {
        "sub": user_id,
        "purpose": PASSWORD_RESET_PURPOSE,
        "pwd": _password_fingerprint(password_hash),
        "exp": expires,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_password_reset_token(token: str) -> dict[str, Any] | None:
    """Return reset-token claims, or None when invalid, expired or of another kind."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("purpose") != PASSWORD_RESET_PURPOSE:
        return None
    return payload


def reset_token_matches(payload: dict[str, Any], password_hash: str) -> bool:
    """True while the password the token was issued for is still current."""
    return payload.get("pwd") == _password_fingerprint(password_hash)
