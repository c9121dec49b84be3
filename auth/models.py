"""
auth/models.py -- Domain dataclasses for identity entities.

Pattern: Data class (pure data container, zero logic). The store and the
identity service do the work; api/models.py owns the HTTP shapes.

RegistrationRequest and User are deliberately separate types. The request
carries the transient password confirmation and is never persisted; User is
what the repository stores. IdentityService.register() is the only mapping
step between the two.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class UserRole(str, Enum):
    MANUFACTURER = "MANUFACTURER"
    DISTRIBUTOR = "DISTRIBUTOR"
    PHARMACY = "PHARMACY"
    END_USER = "END_USER"
    ADMIN = "ADMIN"


@dataclass
class User:
    """A registered identity as stored by the user repository.

    hashed_password is a bcrypt hash, never the plaintext. id, created_at and
    updated_at are assigned by the repository on insert; updated_at is
    refreshed on every mutation.
    """

    username: str
    first_name: str
    last_name: str
    mail_id: str
    phone: str
    dob: date
    role: UserRole = UserRole.END_USER
    hashed_password: str = field(default="", repr=False)
    id: int | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RegistrationRequest:
    """Write-only registration input. Never persisted."""

    username: str
    first_name: str
    last_name: str
    mail_id: str
    phone: str
    dob: date
    password: str = field(repr=False)
    confirm_password: str = field(repr=False)
    role: UserRole = UserRole.END_USER


@dataclass(frozen=True)
class LoginRequest:
    username_or_email: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class UserSummary:
    """What registration hands back -- no password, no hash."""

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        return cls(
            id=user.id,
            username=user.username,
            email=user.mail_id,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
        )


@dataclass(frozen=True)
class ProfileView:
    """Full profile of a user, minus the password hash."""

    id: int
    username: str
    mail_id: str
    first_name: str
    last_name: str
    role: UserRole
    phone: str
    dob: date
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_user(cls, user: User) -> ProfileView:
        return cls(
            id=user.id,
            username=user.username,
            mail_id=user.mail_id,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            phone=user.phone,
            dob=user.dob,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


@dataclass(frozen=True)
class LoginResult:
    token: str = field(repr=False)
    username: str
    role: UserRole


@dataclass(frozen=True)
class TokenClaims:
    """Claims of a token whose signature and expiry have been checked."""

    subject: str
    role: UserRole
    issued_at: datetime
    expires_at: datetime
