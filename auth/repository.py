"""
auth/repository.py -- Storage contract the identity service depends on.

IdentityService only talks to this Protocol, so any backend that provides
these methods works (auth/store.py is the SQLAlchemy implementation; tests
may pass their own).

Uniqueness contract: create_user() must be atomic with respect to username
and email uniqueness. The service's look-before-insert checks exist to give
the right error message, not to guarantee uniqueness; two concurrent
registrations can both pass them. Implementations must reject the second
insert (UNIQUE constraint or equivalent) by raising
sqlalchemy.exc.IntegrityError.
"""

from __future__ import annotations

from typing import Protocol

from auth.models import User


class UserRepository(Protocol):
    def get_by_username(self, username: str) -> User | None:
        """Exact, case-sensitive username lookup."""
        ...

    def get_by_email(self, mail_id: str) -> User | None:
        """Exact email lookup."""
        ...

    def get_by_id(self, user_id: int) -> User | None: ...

    def list_users(self) -> list[User]: ...

    def create_user(self, user: User) -> User:
        """Persist a new user and return it with id and timestamps assigned.

        Raises sqlalchemy.exc.IntegrityError when username or email exists.
        """
        ...

    def set_active(self, user_id: int, active: bool) -> bool:
        """Flip the active flag and refresh updated_at. False if no such user."""
        ...
