"""
auth/errors.py -- Error taxonomy for the identity service.

Every failure the identity service can report is a subclass of IdentityError.
Each class carries a user-safe message and a category; the API layer maps the
category to an HTTP status and never needs to know the concrete class.

  conflict        UsernameTaken, EmailTaken
  validation      PasswordMismatch
  authentication  UserNotFound, InvalidCredentials, AccountDeactivated
  token           TokenInvalid, TokenExpired, MissingAuthorization
  not_found       ProfileNotFound

Storage and hashing failures are not part of this hierarchy. They propagate
as-is and are reported by the generic 500 handler without their text.
"""

from __future__ import annotations


class IdentityError(Exception):
    """Base class for all expected, request-scoped identity failures."""

    category: str = "identity"
    message: str = "Identity error."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class ConflictError(IdentityError):
    category = "conflict"


class ValidationFailed(IdentityError):
    category = "validation"


class AuthenticationError(IdentityError):
    category = "authentication"


class TokenError(IdentityError):
    category = "token"


class NotFoundError(IdentityError):
    category = "not_found"


# ---------------------------------------------------------------------------
# Concrete errors
# ---------------------------------------------------------------------------


class UsernameTaken(ConflictError):
    message = "Username is already taken!"


class EmailTaken(ConflictError):
    message = "Email is already taken!"


class PasswordMismatch(ValidationFailed):
    message = "Passwords do not match!"


class UserNotFound(AuthenticationError):
    message = "User not found!"


class InvalidCredentials(AuthenticationError):
    message = "Invalid password!"


class AccountDeactivated(AuthenticationError):
    message = "Account is deactivated!"


class TokenInvalid(TokenError):
    message = "Invalid token"


class TokenExpired(TokenError):
    message = "Token has expired"


class MissingAuthorization(TokenError):
    message = "Missing or invalid Authorization header"


class ProfileNotFound(NotFoundError):
    """The token was valid but its subject no longer exists."""

    message = "User not found!"
