"""
auth/passwords.py -- One-way password hashing (bcrypt, used directly).

bcrypt embeds the salt and cost factor in its output, so nothing beyond the
hash string needs to be stored. The cost factor comes from
Settings.bcrypt_rounds and can be overridden per call (tests use the minimum
of 4 to stay fast).

bcrypt is used without the passlib wrapper: passlib's wrap-bug probe builds a
password longer than 72 bytes, which bcrypt 4.x rejects outright.
"""

from __future__ import annotations

import bcrypt

from core.config import get_settings


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt 5.x raises ValueError for input past 72 bytes. The API layer
    rejects such passwords with a 422 before they get here.
    """
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext matches the hash. Corrupt hashes give False."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
