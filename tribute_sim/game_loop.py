"""Drive a GameState through the engine: one phase per tick, one event per reveal.

Kept free of Redis so the API store and the headless CLI runner share it.
"""

from __future__ import annotations

import logging
import random

from tribute_sim.api.models import District, GameEvent, GamePhase, GameState, SimulationStepResult, Tribute
from tribute_sim.catalog.registry import EventCatalog
from tribute_sim.engine.policy import DEFAULT_FATALITY_POLICY, FatalityPolicy, choose_day_phase
from tribute_sim.engine.simulator import simulate_phase
from tribute_sim.fsm import GameFSM
from tribute_sim.roster import (
    alive_tributes,
    append_events,
    apply_event_deaths,
    declare_winner,
    initialize_game,
    reset_game,
)
from tribute_sim.validators import ValidationContext, pipeline_for_action

logger = logging.getLogger(__name__)


def tick_rng(state: GameState) -> random.Random:
    return random.Random(f"{state.seed}:{state.tick}")


def _validate(state: GameState, action: str) -> None:
    ctx = ValidationContext(game_id=str(state.game_id), action=action)
    pipeline_for_action(action).validate(ctx=ctx, state=state)


def start_game(state: GameState, *, tributes: list[Tribute], districts: list[District]) -> None:
    """Seat the roster and open the bloodbath on day 0."""

    fsm = GameFSM(state)
    fsm.advance_to(GamePhase.bloodbath)
    initialize_game(state, tributes=tributes, districts=districts)


def run_phase(
    state: GameState,
    *,
    catalog: EventCatalog,
    policy: FatalityPolicy = DEFAULT_FATALITY_POLICY,
) -> SimulationStepResult:
    """Simulate the current phase and queue its events for reveal.

    Deaths are not applied here; see `reveal_next_event`.
    """

    _validate(state, "tick")

    rng = tick_rng(state)
    alive = alive_tributes(state)
    day = state.current_day

    phase = state.current_phase
    if phase == GamePhase.day:
        phase = choose_day_phase(
            day,
            len(alive),
            last_feast_day=state.last_feast_day,
            last_arena_event_day=state.last_arena_event_day,
            rng=rng,
        )
        if phase == GamePhase.feast:
            state.last_feast_day = day
        elif phase == GamePhase.arena_event:
            state.last_arena_event_day = day

    result = simulate_phase(alive, phase, day, rng=rng, catalog=catalog, policy=policy)

    append_events(state, result.events)

    fsm = GameFSM(state)
    fsm.advance_to(result.new_phase)
    fsm.sync_phase_to_model(day=result.new_day)
    state.tick += 1

    _finish_if_done(state)
    return result


def reveal_next_event(state: GameState) -> GameEvent:
    """Apply the deaths of the oldest unrevealed event."""

    _validate(state, "reveal")

    event = state.event_log[state.revealed_count]
    apply_event_deaths(state, event)
    state.revealed_count += 1

    if not state.is_running and state.pending_events:
        # Winner declared mid-phase; the rest of the phase stays in the log, never revealed.
        logger.info("Game %s over with %d event(s) unrevealed", state.game_id, len(state.pending_events))

    _finish_if_done(state)
    return event


def reveal_all(state: GameState) -> list[GameEvent]:
    out: list[GameEvent] = []
    while state.is_running and state.pending_events:
        out.append(reveal_next_event(state))
    return out


def restart_game(state: GameState) -> None:
    _validate(state, "reset")
    reset_game(state)


def _finish_if_done(state: GameState) -> None:
    # The engine may finish the clock before every death is revealed; the game itself
    # ends once nothing is pending.
    if state.current_phase != GamePhase.finished or state.pending_events or not state.is_running:
        return

    alive = alive_tributes(state)
    if len(alive) == 1:
        declare_winner(state, alive[0].id)
    else:
        logger.info("Game %s ended with no survivors", state.game_id)
        declare_winner(state, None)
