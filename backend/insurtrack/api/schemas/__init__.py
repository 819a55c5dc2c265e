"""API schema package."""

from insurtrack.api.schemas.auth import (
    ClientLoginRequest,
    CurrentUserResponse,
    LoginRequest,
    SignupRequest,
    TokenResponse,
)
from insurtrack.api.schemas.policies import PolicyCreateRequest, PolicyResponse
from insurtrack.api.schemas.profiles import ProfileResponse

__all__ = [
    "SignupRequest",
    "LoginRequest",
    "ClientLoginRequest",
    "TokenResponse",
    "CurrentUserResponse",
    "ProfileResponse",
    "PolicyCreateRequest",
    "PolicyResponse",
]
