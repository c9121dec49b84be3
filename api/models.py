"""
API request and response models for the MediChain identity endpoints.

These Pydantic v2 models define the HTTP contract. They are separate from the
dataclasses in auth/models.py, which own the domain representation; route
handlers map between the two.

Field names on the wire are the camelCase names the mobile client already
sends and reads (firstName, mailId, confirmPassword, ...). Python attributes
stay snake_case and are bound to the wire names with aliases.

Dates serialize as yyyy-MM-dd, timestamps as yyyy-MM-dd HH:mm:ss.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from auth.models import (
    DATE_FORMAT,
    TIMESTAMP_FORMAT,
    LoginRequest,
    ProfileView,
    RegistrationRequest,
    UserRole,
    UserSummary,
)

# bcrypt reads at most 72 bytes of a password; 5.x rejects anything longer.
_PASSWORD_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > _PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {_PASSWORD_MAX_BYTES} bytes when UTF-8 encoded.")
    return value


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterBody(BaseModel):
    """Request body for POST /api/register."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1, max_length=255)
    first_name: str = Field(alias="firstName", min_length=1, max_length=255)
    last_name: str = Field(alias="lastName", min_length=1, max_length=255)
    mail_id: str = Field(alias="mailId", min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str = Field(min_length=1, max_length=32)
    dob: date
    password: str = Field(min_length=1)
    confirm_password: str = Field(alias="confirmPassword")
    role: UserRole = UserRole.END_USER

    @field_validator("password", "confirm_password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)

    @field_validator("role")
    @classmethod
    def no_self_service_admin(cls, value: UserRole) -> UserRole:
        """ADMIN accounts are created with the CLI, never through registration."""
        if value is UserRole.ADMIN:
            raise ValueError("ADMIN accounts cannot be self-registered.")
        return value

    def to_domain(self) -> RegistrationRequest:
        return RegistrationRequest(
            username=self.username,
            first_name=self.first_name,
            last_name=self.last_name,
            mail_id=self.mail_id,
            phone=self.phone,
            dob=self.dob,
            password=self.password,
            confirm_password=self.confirm_password,
            role=self.role,
        )


class LoginBody(BaseModel):
    """Request body for POST /api/login."""

    model_config = ConfigDict(populate_by_name=True)

    username_or_email: str = Field(alias="usernameOrEmail", min_length=1, max_length=255)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)

    def to_domain(self) -> LoginRequest:
        return LoginRequest(username_or_email=self.username_or_email, password=self.password)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserSummaryOut(BaseModel):
    """The user block of a successful registration. Never carries a password."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    username: str
    email: str
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    role: UserRole

    @classmethod
    def from_summary(cls, summary: UserSummary) -> "UserSummaryOut":
        return cls(
            id=summary.id,
            username=summary.username,
            email=summary.email,
            first_name=summary.first_name,
            last_name=summary.last_name,
            role=summary.role,
        )


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "User registered successfully!"
    user: UserSummaryOut


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Login successful!"
    token: str
    username: str
    role: UserRole


class FailureResponse(BaseModel):
    """Body of every register/login failure: success=false plus a message."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    message: str
    detail: Optional[str] = None


class ProfileResponse(BaseModel):
    """Response for GET /api/profile -- the full profile minus the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    mail_id: str = Field(serialization_alias="mailId")
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    role: UserRole
    phone: str
    dob: date
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")

    @field_serializer("dob")
    def format_dob(self, value: date) -> str:
        return value.strftime(DATE_FORMAT)

    @field_serializer("created_at", "updated_at")
    def format_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return value.strftime(TIMESTAMP_FORMAT) if value is not None else None

    @classmethod
    def from_profile(cls, profile: ProfileView) -> "ProfileResponse":
        return cls(
            id=profile.id,
            username=profile.username,
            mail_id=profile.mail_id,
            first_name=profile.first_name,
            last_name=profile.last_name,
            role=profile.role,
            phone=profile.phone,
            dob=profile.dob,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )


class ProfileErrorResponse(BaseModel):
    """Body of a profile failure. The mobile client reads the "error" key."""

    model_config = ConfigDict(frozen=True)

    error: str
