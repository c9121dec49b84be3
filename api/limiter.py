"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (mounted through SlowAPIMiddleware) and by
api/routes/users.py (per-route limits via @limiter.limit()). One shared
instance means one counter store; per-module instances would each count
separately and never trigger.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
