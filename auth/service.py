"""
auth/service.py -- Identity service: registration, login, profile, activation.

The service is the only authority on why an identity operation failed. It
raises the specific IdentityError subclass (auth/errors.py) and leaves it to
the API layer to decide how to present it.

State machine per user:

    Unregistered --register--> Active --deactivate--> Inactive
                                  ^                       |
                                  +-------activate--------+

Inactive blocks login only; the record and its profile remain.

Check order in register() is part of the contract: username, then email,
then password confirmation. The first failing check wins.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import (
    AccountDeactivated,
    EmailTaken,
    InvalidCredentials,
    PasswordMismatch,
    ProfileNotFound,
    UsernameTaken,
    UserNotFound,
)
from auth.models import (
    LoginRequest,
    LoginResult,
    ProfileView,
    RegistrationRequest,
    TokenClaims,
    User,
    UserSummary,
)
from auth.passwords import hash_password, verify_password
from auth.repository import UserRepository
from auth.tokens import TokenService

logger = logging.getLogger("medichain.identity")

LOGOUT_ACK = "Logged out"


class IdentityService:
    """Orchestrates the identity workflow over a repository and a token service.

    Usage:
        identity = IdentityService(UserStore(), TokenService.from_settings())
        summary = identity.register(RegistrationRequest(...))
        result = identity.login(LoginRequest("alice", "P@ss1"))
        profile = identity.get_profile(result.token)
    """

    def __init__(
        self,
        repository: UserRepository,
        tokens: TokenService,
        bcrypt_rounds: int | None = None,
    ) -> None:
        self.repository = repository
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, request: RegistrationRequest) -> UserSummary:
        """Create an active user from a registration request.

        Raises UsernameTaken, EmailTaken or PasswordMismatch, in that order of
        precedence.
        """
        self._check_available(request.username, request.mail_id)
        if request.password != request.confirm_password:
            raise PasswordMismatch()

        user = User(
            username=request.username,
            first_name=request.first_name,
            last_name=request.last_name,
            mail_id=request.mail_id,
            phone=request.phone,
            dob=request.dob,
            role=request.role,
            hashed_password=hash_password(request.password, rounds=self.bcrypt_rounds),
            is_active=True,
        )
        try:
            saved = self.repository.create_user(user)
        except IntegrityError:
            # A concurrent registration got there first. Re-run the lookups so
            # the caller sees the same error precedence as the pre-check.
            logger.info("Registration for %r lost a uniqueness race", request.username)
            self._check_available(request.username, request.mail_id)
            raise

        logger.info("Registered user %r (id=%s, role=%s)", saved.username, saved.id, saved.role.value)
        return UserSummary.from_user(saved)

    def _check_available(self, username: str, mail_id: str) -> None:
        if self.repository.get_by_username(username) is not None:
            raise UsernameTaken()
        if self.repository.get_by_email(mail_id) is not None:
            raise EmailTaken()

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    def login(self, request: LoginRequest) -> LoginResult:
        """Authenticate by username or email and issue a session token.

        Raises UserNotFound, InvalidCredentials or AccountDeactivated. The
        password is checked before the active flag, so a deactivated account
        with a wrong password reports InvalidCredentials.
        """
        user = self._resolve(request.username_or_email)
        if user is None:
            logger.warning("Login failed: no user matches the given identifier")
            raise UserNotFound()
        if not verify_password(request.password, user.hashed_password):
            logger.warning("Login failed for %r: invalid password", user.username)
            raise InvalidCredentials()
        if not user.is_active:
            logger.warning("Login refused for %r: account deactivated", user.username)
            raise AccountDeactivated()

        token = self.tokens.issue(user.username, user.role)
        logger.info("User %r logged in", user.username)
        return LoginResult(token=token, username=user.username, role=user.role)

    def _resolve(self, username_or_email: str) -> User | None:
        user = self.repository.get_by_username(username_or_email)
        if user is None:
            user = self.repository.get_by_email(username_or_email)
        return user

    def logout(self) -> str:
        """Acknowledge a logout. Tokens are stateless, so nothing changes server-side."""
        return LOGOUT_ACK

    # ------------------------------------------------------------------
    # Tokens and profile
    # ------------------------------------------------------------------

    def authenticate(self, token: str) -> TokenClaims:
        """Verify a bearer token. Raises TokenInvalid or TokenExpired."""
        return self.tokens.verify(token)

    def get_profile(self, token: str) -> ProfileView:
        """Return the profile of the token's subject.

        The token is fully verified before its subject is read. Raises
        TokenInvalid, TokenExpired, or ProfileNotFound when the user was
        removed after the token was issued.
        """
        username = self.tokens.extract_subject(token)
        user = self.repository.get_by_username(username)
        if user is None:
            raise ProfileNotFound()
        return ProfileView.from_user(user)

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def deactivate(self, username: str) -> UserSummary:
        """Mark a user inactive. Their tokens stay valid until expiry; login is refused."""
        return self._set_active(username, False)

    def activate(self, username: str) -> UserSummary:
        return self._set_active(username, True)

    def _set_active(self, username: str, active: bool) -> UserSummary:
        user = self.repository.get_by_username(username)
        if user is None or not self.repository.set_active(user.id, active):
            raise UserNotFound()
        logger.info("User %r %s", username, "activated" if active else "deactivated")
        user.is_active = active
        return UserSummary.from_user(user)
