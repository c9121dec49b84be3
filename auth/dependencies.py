"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_identity_service() hands routes the IdentityService wired in lifespan.

bearer_token() extracts the token from "Authorization: Bearer <token>" and
raises MissingAuthorization when the header is absent or malformed. It does
not verify the token; IdentityService does that.

enforce_access_policy() is registered app-wide through
FastAPI(dependencies=[...]) in api/main.py, so it runs before every route. Its behaviour is selected by
Settings.access_policy:
  permissive           -- every request passes (the live policy).
  protected-endpoints  -- every path outside PUBLIC_PATHS needs a token that
                          verifies, else the request fails with a TokenError.

Layer rule: no imports from api/. auth/dependencies.py may import from
fastapi because it is part of the dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import MissingAuthorization
from auth.service import IdentityService
from core.config import AccessPolicy

PUBLIC_PATHS = frozenset({"/api/register", "/api/login", "/api/health"})

_BEARER_PREFIX = "Bearer "


def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identity


def bearer_token(request: Request) -> str:
    """Return the raw token from the Authorization header.

    Raises MissingAuthorization if the header is missing, does not use the
    Bearer scheme, or carries an empty token.
    """
    header = request.headers.get("Authorization")
    if not header or not header.startswith(_BEARER_PREFIX):
        raise MissingAuthorization()
    token = header[len(_BEARER_PREFIX) :].strip()
    if not token:
        raise MissingAuthorization()
    return token


def enforce_access_policy(request: Request) -> None:
    """Gate the request according to the configured access policy."""
    policy: AccessPolicy = request.app.state.access_policy
    if policy is AccessPolicy.permissive:
        return
    if request.url.path in PUBLIC_PATHS:
        return
    identity: IdentityService = request.app.state.identity
    identity.authenticate(bearer_token(request))
