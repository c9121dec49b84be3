"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper. UserStore is the repository (it satisfies
auth.repository.UserRepository); _row_to_user is the mapper. Service and
route code never touch SQL directly.

Uniqueness:
  UNIQUE(username) and UNIQUE(mail_id) are enforced by the database.
  create_user() raises sqlalchemy.exc.IntegrityError on a duplicate, which
  is what closes the race between two concurrent registrations that both
  passed the service-level lookups.

Timestamps:
  created_at is written once on insert. updated_at is written on insert and
  on every update. Both are naive UTC datetimes.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine

from auth.models import User, UserRole
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("role", String(30), nullable=False),
    Column("username", String(255), nullable=False, unique=True),
    Column("first_name", String(255), nullable=False),
    Column("last_name", String(255), nullable=False),
    Column("mail_id", String(255), nullable=False, unique=True),
    Column("phone", String(32), nullable=False),
    Column("dob", Date, nullable=False),
    Column("password", Text, nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime),
    Column("is_active", Boolean, nullable=False, server_default="1"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new pool
    connections.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        saved = store.create_user(User(username="alice", ..., hashed_password=hash_password("secret")))
        user = store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, mail_id: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.mail_id == mail_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by username."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.username)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return the stored record.

        Raises sqlalchemy.exc.IntegrityError if the username or email already
        exists. Raises ValueError for an empty password hash; a persisted user
        always has one.
        """
        if not user.hashed_password:
            raise ValueError("Refusing to persist a user without a password hash.")
        now = _utcnow()
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.insert().values(
                    role=UserRole(user.role).value,
                    username=user.username,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    mail_id=user.mail_id,
                    phone=user.phone,
                    dob=user.dob,
                    password=user.hashed_password,
                    created_at=now,
                    updated_at=now,
                    is_active=user.is_active,
                )
            )
            user_id = result.inserted_primary_key[0]
        return self.get_by_id(user_id)

    def set_active(self, user_id: int, active: bool) -> bool:
        """Set the active flag. Returns True if a row was updated."""
        return self._update(user_id, is_active=active)

    def _update(self, user_id: int, **values) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(updated_at=_utcnow(), **values)
            )
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        role=UserRole(row.role),
        username=row.username,
        first_name=row.first_name,
        last_name=row.last_name,
        mail_id=row.mail_id,
        phone=row.phone,
        dob=row.dob,
        hashed_password=row.password,
        created_at=row.created_at,
        updated_at=row.updated_at,
        is_active=bool(row.is_active),
    )
