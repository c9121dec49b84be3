"""
api/main.py -- FastAPI application entry point for the MediChain identity service.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- origins from Settings.cors_origins (mobile emulator, LAN)
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter

Every route passes through enforce_access_policy (an app-level dependency),
which is a no-op under the permissive policy.

Lifespan builds the user store, token service and identity service on startup
and disposes of the store's engine on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import FailureResponse, ProfileErrorResponse
from api.routes.users import router as users_router
from auth.dependencies import enforce_access_policy
from auth.errors import IdentityError
from auth.service import IdentityService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("medichain.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the identity stack on startup, release it on shutdown."""
    logger.info("MediChain identity service starting up")
    app.state.user_store = UserStore(_settings.database_url)
    app.state.identity = IdentityService(app.state.user_store, TokenService.from_settings(_settings))
    app.state.access_policy = _settings.access_policy
    logger.info(
        "Identity service ready (access_policy=%s, token_ttl=%ss)",
        _settings.access_policy.value,
        _settings.token_expire_seconds,
    )

    yield

    app.state.user_store.close()
    logger.info("MediChain identity service shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="MediChain Identity API",
    description="Registration, login and profile lookup for the MediChain supply-chain app.",
    version=__version__,
    lifespan=lifespan,
    dependencies=[Depends(enforce_access_policy)],
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(users_router, prefix="/api", tags=["Users"])

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

_STATUS_BY_CATEGORY = {
    "conflict": 400,
    "validation": 400,
    "authentication": 401,
    "token": 401,
    "not_found": 404,
}


@app.exception_handler(IdentityError)
async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    """Translate a domain failure into its status code and body shape.

    Register/login failures use the {"success": false, "message"} envelope;
    token and profile failures use {"error": message}.
    """
    status_code = _STATUS_BY_CATEGORY.get(exc.category, 400)
    if exc.category in ("token", "not_found"):
        content = ProfileErrorResponse(error=exc.message).model_dump()
    else:
        content = FailureResponse(message=exc.message).model_dump(exclude_none=True)
    response = JSONResponse(status_code=status_code, content=content)
    if exc.category == "authentication":
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=FailureResponse(message="Too many requests.", detail=str(exc.detail)).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 when the request body fails validation."""
    return JSONResponse(
        status_code=422,
        content=FailureResponse(
            message="Request validation failed.",
            detail=str(exc.errors()),
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for storage, hashing and other unexpected failures.

    The exception is logged server-side only; the client gets a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=FailureResponse(message="An unexpected error occurred.").model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined here rather than in a router so it is reachable regardless of
# router state. Not rate limited.
# ---------------------------------------------------------------------------


@app.get("/api/health", response_class=PlainTextResponse, tags=["Health"])
async def health() -> PlainTextResponse:
    """Return a plain-text liveness string."""
    return PlainTextResponse("Backend is running")
