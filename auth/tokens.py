"""
auth/tokens.py -- Session token issuance and verification.

Tokens are python-jose JWTs signed with HS256 and SECRET_KEY. Each carries:
  sub   the username
  role  the UserRole value
  iat   issued-at
  exp   iat + TOKEN_EXPIRE_SECONDS (fixed when the token is issued)

Tokens are stateless. Nothing is stored server-side and logout does not
revoke anything; a token stays valid until exp.

verify() is the only way to read a claim. extract_subject() calls verify()
first, so no code path trusts a claim before the signature check passes.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenExpired, TokenInvalid
from auth.models import TokenClaims, UserRole
from core.config import Settings, get_settings

_ALGORITHM = "HS256"


class TokenService:
    """Issue and verify signed, time-limited session tokens.

    Usage:
        tokens = TokenService.from_settings()
        token = tokens.issue("alice", UserRole.END_USER)
        claims = tokens.verify(token)   # raises TokenInvalid / TokenExpired
    """

    def __init__(self, secret_key: str, ttl_seconds: int, algorithm: str = _ALGORITHM) -> None:
        self._secret_key = secret_key
        self.ttl = timedelta(seconds=ttl_seconds)
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TokenService:
        settings = settings or get_settings()
        return cls(settings.secret_key, settings.token_expire_seconds)

    def issue(self, subject: str, role: UserRole | str, issued_at: datetime | None = None) -> str:
        """Encode a signed token for subject with the configured TTL.

        issued_at defaults to now; callers only pass it to back-date tokens.
        """
        iat = issued_at or datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "role": UserRole(role).value,
            "iat": iat,
            "exp": iat + self.ttl,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Check signature and expiry, then return the embedded claims.

        Raises TokenExpired when the current time is past exp, TokenInvalid for
        everything else: bad signature, malformed structure, missing claims.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTError as exc:
            raise TokenInvalid() from exc

        subject = payload.get("sub")
        if not subject or "role" not in payload or "exp" not in payload or "iat" not in payload:
            raise TokenInvalid()
        try:
            role = UserRole(payload["role"])
        except ValueError as exc:
            raise TokenInvalid() from exc

        return TokenClaims(
            subject=subject,
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def extract_subject(self, token: str) -> str:
        """Return the username of a token, after full verification."""
        return self.verify(token).subject
