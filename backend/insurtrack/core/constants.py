"""Shared constants and enums used across the application."""

from enum import StrEnum


class AppRole(StrEnum):
    """Application roles stored in user_roles."""

    ADMIN = "admin"
    AGENT = "agent"
    USER = "user"


STAFF_ROLES = frozenset({AppRole.ADMIN, AppRole.AGENT})


class InsuranceType(StrEnum):
    """Kinds of personal insurance a policy can cover."""

    LIFE = "life"
    HEALTH = "health"
    VEHICLE = "vehicle"
    HOUSE = "house"


class PolicyStatus(StrEnum):
    """Lifecycle status of an insurance policy."""

    ACTIVE = "active"
    PENDING = "pending"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# A client whose policies are all in these states counts as "expired".
CLOSED_POLICY_STATUSES = frozenset({PolicyStatus.EXPIRED, PolicyStatus.CANCELLED})


class CommissionStatus(StrEnum):
    """Payout status of an agent commission."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Gender(StrEnum):
    """Values accepted for profiles.gender."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


ALLOWED_AVATAR_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
