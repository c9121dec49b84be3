"""
core/config.py -- Centralized configuration for the MediChain identity service.

All environment variable reads happen here. No module should call os.getenv()
directly -- import get_settings() instead.

  Singleton via lru_cache: get_settings() builds Settings once and returns the
      cached instance afterwards. Tests call get_settings.cache_clear() when
      they need different environment variables.

  BaseSettings (pydantic-settings): field names map to env var names
      (e.g. token_expire_seconds -> TOKEN_EXPIRE_SECONDS). An optional .env
      file is read as well.

  @model_validator(mode="after"): SECRET_KEY policy. Dev mode (DEBUG=true)
      generates a key with a warning; production refuses to start without one.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("medichain.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'medichain_identity.db'}"


class AccessPolicy(str, Enum):
    """Which routes require a bearer token.

    permissive:          every request is let through (the live policy).
    protected-endpoints: everything except register, login and health needs
                         a valid token.
    """

    permissive = "permissive"
    protected_endpoints = "protected-endpoints"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field has a default so Settings() works in tests without a .env
    file. The model_validator enforces the SECRET_KEY rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string means "not configured"; the validator below replaces or rejects it.
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = Field(default=24 * 60 * 60, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    access_policy: AccessPolicy = AccessPolicy.permissive

    # ------------------------------------------------------------------
    # HTTP boundary
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    cors_origins: list[str] = [
        "http://10.0.2.2",
        "http://localhost",
        "http://192.168.0.131",
    ]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive a restart.

        Production mode: refuse to start when SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters; HS256 signing
            depends on key entropy.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Issued tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between cases that need a
    different environment.
    """
    return Settings()
