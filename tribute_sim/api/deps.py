from __future__ import annotations

from collections.abc import Generator

import redis

from tribute_sim.catalog.registry import EventCatalog
from tribute_sim.catalog.singleton import get_catalog
from tribute_sim.engine.policy import FatalityPolicy, fatality_policy_from_env
from tribute_sim.infra.redis_client import create_redis


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        client.close()


def get_event_catalog() -> EventCatalog:
    return get_catalog()


def get_fatality_policy() -> FatalityPolicy:
    return fatality_policy_from_env()
