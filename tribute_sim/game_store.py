from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID, uuid4

import redis

from tribute_sim.api.models import GameState, TributeInput
from tribute_sim.game_loop import start_game
from tribute_sim.roster import build_roster, default_cast

logger = logging.getLogger(__name__)

GAMES_SET_KEY = "tribute_sim:games"
GAME_KEY_PREFIX = "tribute_sim:game:"  # + {uuid}


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _game_key(game_id: UUID) -> str:
    return f"{GAME_KEY_PREFIX}{game_id}"


def save_game(*, r: redis.Redis, state: GameState) -> None:
    state.last_updated_at = _now()
    r.set(_game_key(state.game_id), state.model_dump_json())


def get_game(*, r: redis.Redis, game_id: UUID) -> GameState | None:
    raw = r.get(_game_key(game_id))
    if not raw:
        return None
    return GameState.model_validate_json(raw)


def require_game(*, r: redis.Redis, game_id: UUID) -> GameState:
    state = get_game(r=r, game_id=game_id)
    if state is None:
        raise ValueError("Game not found")
    return state


def new_game_state(*, tributes: Sequence[TributeInput] | None = None, seed: int | None = None) -> GameState:
    """Build a started game (bloodbath, day 0) without touching Redis."""

    inputs = list(tributes) if tributes else default_cast()
    roster, districts = build_roster(inputs)

    if seed is None:
        seed = random.SystemRandom().randint(1, 2**31 - 1)

    now = _now()
    state = GameState(game_id=uuid4(), created_at=now, last_updated_at=now, seed=seed)
    start_game(state, tributes=roster, districts=districts)
    return state


def create_game(
    *,
    r: redis.Redis,
    tributes: Sequence[TributeInput] | None = None,
    seed: int | None = None,
) -> GameState:
    state = new_game_state(tributes=tributes, seed=seed)

    r.set(_game_key(state.game_id), state.model_dump_json())
    r.sadd(GAMES_SET_KEY, str(state.game_id))

    logger.info("Created game %s with %d tributes (seed=%d)", state.game_id, len(state.tributes), state.seed)
    return state


def list_games(*, r: redis.Redis) -> list[GameState]:
    """Every stored game, newest first. Set members without a payload are skipped."""

    ids = list(r.smembers(GAMES_SET_KEY))
    if not ids:
        return []
    raws = r.mget([f"{GAME_KEY_PREFIX}{gid}" for gid in ids])
    states = [GameState.model_validate_json(raw) for raw in raws if raw]
    return sorted(states, key=lambda s: s.created_at, reverse=True)
