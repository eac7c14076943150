# src/domain/roles.py

from enum import Enum


class UserRole(str, Enum):
    AUDIENCE = "AUDIENCE"
    ORGANIZER_UNVERIFIED = "ORGANIZER_UNVERIFIED"
    ORGANIZER_VERIFIED = "ORGANIZER_VERIFIED"
    COMEDIAN_UNVERIFIED = "COMEDIAN_UNVERIFIED"
    COMEDIAN_VERIFIED = "COMEDIAN_VERIFIED"
    ADMIN = "ADMIN"


class CreatorKind(str, Enum):
    ORGANIZER = "ORGANIZER"
    COMEDIAN = "COMEDIAN"


class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def unverified_role(kind: CreatorKind) -> UserRole:
    return UserRole(f"{kind.value}_UNVERIFIED")


def verified_role(kind: CreatorKind) -> UserRole:
    return UserRole(f"{kind.value}_VERIFIED")


def can_create_shows(role: UserRole) -> bool:
    return role in (UserRole.ORGANIZER_VERIFIED, UserRole.COMEDIAN_VERIFIED)


def is_creator(role: UserRole) -> bool:
    return role.value.startswith(("ORGANIZER", "COMEDIAN"))
