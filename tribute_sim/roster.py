"""Caller-side mutation entry points over `GameState`.

The engine only returns data; everything that changes a roster, the event log or the
phase clock goes through here.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tribute_sim.api.models import (
    ENVIRONMENTAL_KILLER,
    District,
    GameEvent,
    GamePhase,
    GameState,
    Gender,
    Tribute,
    TributeInput,
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_URL = "/images/default-tribute.svg"

DEFAULT_CAST: tuple[tuple[str, Gender], ...] = (
    ("Katniss Everdeen", Gender.female),
    ("Peeta Mellark", Gender.male),
    ("Gale Hawthorne", Gender.male),
    ("Primrose Everdeen", Gender.female),
    ("Finnick Odair", Gender.male),
    ("Johanna Mason", Gender.female),
    ("Rue", Gender.female),
    ("Thresh", Gender.male),
    ("Cato", Gender.male),
    ("Clove", Gender.female),
    ("Marvel", Gender.male),
    ("Glimmer", Gender.female),
    ("Foxface", Gender.female),
    ("Beetee", Gender.male),
    ("Wiress", Gender.female),
    ("Mags", Gender.female),
    ("Annie Cresta", Gender.female),
    ("Haymitch Abernathy", Gender.male),
    ("Effie Trinket", Gender.female),
    ("Caesar Flickerman", Gender.male),
    ("Seneca Crane", Gender.male),
    ("Snow", Gender.male),
    ("Coin", Gender.female),
    ("Boggs", Gender.male),
)


def default_cast() -> list[TributeInput]:
    return [TributeInput(name=name, gender=gender) for name, gender in DEFAULT_CAST]


def validate_tribute_inputs(inputs: Sequence[TributeInput], *, min_tributes: int = 2, max_tributes: int = 48) -> None:
    n = len(inputs)
    if n < min_tributes:
        raise ValueError(f"At least {min_tributes} tributes required")
    if n > max_tributes:
        raise ValueError(f"At most {max_tributes} tributes allowed")
    if n % 2 != 0:
        raise ValueError("Tributes are paired into districts; an even number is required")

    names = [i.name.strip().casefold() for i in inputs]
    if any(not name for name in names):
        raise ValueError("Tribute names must not be blank")
    if len(set(names)) != len(names):
        raise ValueError("Tribute names must be unique")


def build_roster(inputs: Sequence[TributeInput]) -> tuple[list[Tribute], list[District]]:
    """Create tributes (ids t1..tN) and pair them into districts in input order."""

    validate_tribute_inputs(inputs)

    tributes = [
        Tribute(
            id=f"t{i + 1}",
            name=inp.name.strip(),
            gender=inp.gender,
            image_url=inp.image_url.strip() or DEFAULT_IMAGE_URL,
            district_id=i // 2 + 1,
        )
        for i, inp in enumerate(inputs)
    ]
    districts = [
        District(id=d + 1, tribute1_id=tributes[d * 2].id, tribute2_id=tributes[d * 2 + 1].id)
        for d in range(len(tributes) // 2)
    ]
    return tributes, districts


def initialize_game(state: GameState, *, tributes: list[Tribute], districts: list[District]) -> None:
    state.tributes = tributes
    state.districts = districts
    state.current_day = 0
    state.current_phase = GamePhase.bloodbath
    state.is_running = True
    state.event_log = []
    state.revealed_count = 0
    state.last_feast_day = None
    state.last_arena_event_day = None
    state.winner_id = None


def reset_game(state: GameState) -> None:
    """Back to the initial roster: everyone alive, no kills, empty log, bloodbath on day 0."""

    fresh = [
        t.model_copy(update={"is_alive": True, "kills": 0, "death_day": None, "death_phase": None, "killed_by": None})
        for t in state.tributes
    ]
    initialize_game(state, tributes=fresh, districts=list(state.districts))
    state.tick = 0


def tribute_by_id(state: GameState, tribute_id: str) -> Tribute | None:
    return next((t for t in state.tributes if t.id == tribute_id), None)


def require_tribute(state: GameState, tribute_id: str) -> Tribute:
    t = tribute_by_id(state, tribute_id)
    if t is None:
        raise ValueError(f"Tribute not found: {tribute_id}")
    return t


def alive_tributes(state: GameState) -> list[Tribute]:
    return [t for t in state.tributes if t.is_alive]


def dead_tributes(state: GameState) -> list[Tribute]:
    return [t for t in state.tributes if not t.is_alive]


def district_tributes(state: GameState, district_id: int) -> list[Tribute]:
    return [t for t in state.tributes if t.district_id == district_id]


def fallen_on_day(state: GameState, day: int) -> list[Tribute]:
    return [t for t in state.tributes if not t.is_alive and t.death_day == day]


def mark_tribute_dead(state: GameState, tribute_id: str, *, killed_by: str | None) -> Tribute:
    tribute = require_tribute(state, tribute_id)
    if not tribute.is_alive:
        raise ValueError(f"Tribute {tribute_id} is already dead")

    tribute.is_alive = False
    tribute.death_day = state.current_day
    tribute.death_phase = state.current_phase
    tribute.killed_by = killed_by or ENVIRONMENTAL_KILLER
    return tribute


def increment_kills(state: GameState, tribute_id: str) -> Tribute:
    tribute = require_tribute(state, tribute_id)
    tribute.kills += 1
    return tribute


def append_events(state: GameState, events: Sequence[GameEvent]) -> None:
    state.event_log.extend(events)


def advance_phase(state: GameState, new_phase: GamePhase, new_day: int | None = None) -> None:
    state.current_phase = new_phase
    if new_day is not None:
        state.current_day = new_day


def declare_winner(state: GameState, tribute_id: str | None) -> None:
    """Finish the game. `None` means nobody survived."""

    if tribute_id is not None:
        require_tribute(state, tribute_id)
    state.winner_id = tribute_id
    state.current_phase = GamePhase.finished
    state.is_running = False


def apply_event_deaths(state: GameState, event: GameEvent) -> list[Tribute]:
    """Apply one event's deaths and its (single) kill credit.

    Death day/phase are stamped from the event itself, since the clock has usually moved on
    by the time a caller reveals it.
    """

    fallen: list[Tribute] = []
    for tribute_id in event.deaths:
        tribute = mark_tribute_dead(state, tribute_id, killed_by=event.killer)
        tribute.death_day = event.day
        tribute.death_phase = event.phase
        fallen.append(tribute)

    if event.killer is not None:
        increment_kills(state, event.killer)

    remaining = alive_tributes(state)
    if len(remaining) == 1:
        logger.info("Game %s won by %s", state.game_id, remaining[0].name)
        declare_winner(state, remaining[0].id)

    return fallen
