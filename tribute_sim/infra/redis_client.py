from __future__ import annotations

import os

import redis

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    """`TRIBUTE_SIM_REDIS_URL`, else the conventional `REDIS_URL`, else a local instance."""

    return os.environ.get("TRIBUTE_SIM_REDIS_URL") or os.environ.get("REDIS_URL") or DEFAULT_REDIS_URL


def create_redis(url: str | None = None) -> redis.Redis:
    # Game state is stored as JSON text and feed fields are read back as str.
    return redis.Redis.from_url(url or get_redis_url(), decode_responses=True, health_check_interval=30)
