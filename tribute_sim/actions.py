from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID

import redis

from tribute_sim.api.models import GameEvent, GameState, SimulationStepResult
from tribute_sim.catalog.registry import EventCatalog
from tribute_sim.engine.policy import DEFAULT_FATALITY_POLICY, FatalityPolicy
from tribute_sim.game_loop import restart_game, reveal_next_event, run_phase
from tribute_sim.game_store import require_game, save_game
from tribute_sim.lock import game_lock
from tribute_sim.streams import clear_feed, feed_entry_for_event, feed_entry_for_game_over, publish_many

logger = logging.getLogger(__name__)

ActionName = Literal["tick", "reveal", "reset"]
ACTION_NAMES: frozenset[str] = frozenset({"tick", "reveal", "reset"})


@dataclass(frozen=True, slots=True)
class ActionResult:
    state: GameState
    step: SimulationStepResult | None = None
    event: GameEvent | None = None
    feed_entry_ids: list[str] = field(default_factory=list)


def dispatch_action(
    *,
    r: redis.Redis,
    game_id: UUID,
    action: ActionName,
    catalog: EventCatalog,
    policy: FatalityPolicy = DEFAULT_FATALITY_POLICY,
) -> ActionResult:
    """Entry point for the API routes.

    - loads the game under a per-game lock
    - validates and applies the action through the game loop
    - persists state
    - appends revealed events to the game's feed stream
    """

    if action not in ACTION_NAMES:
        raise ValueError(f"Unknown action: {action}")

    with game_lock(r=r, game_id=str(game_id)):
        state = require_game(r=r, game_id=game_id)
        was_running = state.is_running

        step: SimulationStepResult | None = None
        event: GameEvent | None = None
        entries: list[tuple[str, dict[str, str]]] = []

        if action == "tick":
            step = run_phase(state, catalog=catalog, policy=policy)
        elif action == "reveal":
            event = reveal_next_event(state)
            entries.append(feed_entry_for_event(state=state, event=event))
        else:
            restart_game(state)
            clear_feed(r=r, game_id=str(game_id))

        if was_running and not state.is_running:
            entries.append(feed_entry_for_game_over(state=state))

        save_game(r=r, state=state)
        ids = publish_many(r=r, entries=entries)

    logger.debug("Game %s: %s applied (phase=%s day=%d)", game_id, action, state.current_phase, state.current_day)
    return ActionResult(state=state, step=step, event=event, feed_entry_ids=ids)
