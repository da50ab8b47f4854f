from __future__ import annotations

from contextlib import contextmanager
from uuid import uuid4

import redis


@contextmanager
def game_lock(*, r: redis.Redis, game_id: str, ttl_ms: int = 5_000):
    """Per-game lock so tick/reveal/reset never interleave on one roster.

    Each holder writes its own token and only releases the lock if the token is still
    its own (the TTL may have expired and handed the lock to someone else).
    """

    key = f"lock:game:{game_id}"
    token = uuid4().hex
    acquired = r.set(key, token, nx=True, px=ttl_ms)
    if not acquired:
        raise ValueError("Game is busy")
    try:
        yield
    finally:
        # Not atomic; good enough for a single API process.
        if r.get(key) == token:
            r.delete(key)
