"""
api/routes/users.py -- Registration, login, logout and profile endpoints.

Routes:
  POST /api/register  -- create an account; 201 with a user summary
  POST /api/login     -- username-or-email + password; 200 with a token
  POST /api/logout    -- plain-text acknowledgement; tokens are stateless
  GET  /api/profile   -- full profile for the bearer token's subject

Handlers only translate between HTTP and IdentityService. Failures are
raised by the service as IdentityError subclasses and turned into responses
by the handler registered in api/main.py:
  conflict / validation  -> 400 {"success": false, "message": ...}
  authentication         -> 401 {"success": false, "message": ...}
  token                  -> 401 {"error": ...}
  not_found              -> 404 {"error": ...}

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Login responses carry Cache-Control: no-store.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from api.limiter import limiter
from api.models import (
    LoginBody,
    LoginResponse,
    ProfileResponse,
    RegisterBody,
    RegisterResponse,
    UserSummaryOut,
)
from auth.dependencies import bearer_token, get_identity_service
from auth.service import IdentityService
from core.config import get_settings

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(body: RegisterBody, identity: IdentityService = Depends(get_identity_service)) -> JSONResponse:
    """Register a new account. The response never contains the password or its hash."""
    summary = identity.register(body.to_domain())
    return JSONResponse(
        status_code=201,
        content=RegisterResponse(user=UserSummaryOut.from_summary(summary)).model_dump(mode="json", by_alias=True),
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit(get_settings().login_rate_limit)  # under @router, so the registered endpoint is the limited wrapper
def login(request: Request, body: LoginBody) -> JSONResponse:
    """Authenticate by username or email and return a session token."""
    identity = get_identity_service(request)
    result = identity.login(body.to_domain())
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=result.token, username=result.username, role=result.role).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout", response_class=PlainTextResponse)
def logout(identity: IdentityService = Depends(get_identity_service)) -> PlainTextResponse:
    """Acknowledge logout. The client discards its token; nothing is revoked."""
    return PlainTextResponse(identity.logout())


@router.get("/profile", response_model=ProfileResponse)
def profile(request: Request, identity: IdentityService = Depends(get_identity_service)) -> JSONResponse:
    """Return the profile of the user the bearer token was issued to."""
    view = identity.get_profile(bearer_token(request))
    return JSONResponse(content=ProfileResponse.from_profile(view).model_dump(mode="json", by_alias=True))
