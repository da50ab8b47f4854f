from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID

from tribute_sim.api.models import GameEvent, GamePhase, SimulationStepResult, Tribute
from tribute_sim.catalog.registry import ENVIRONMENTAL_SLOT, EventCatalog, EventCategory, EventTemplate, GearCatalog
from tribute_sim.engine.policy import DEFAULT_FATALITY_POLICY, FatalityPolicy
from tribute_sim.engine.text import render_event_text

logger = logging.getLogger(__name__)


PHASE_CATEGORIES: dict[GamePhase, EventCategory] = {
    GamePhase.bloodbath: EventCategory.bloodbath,
    GamePhase.day: EventCategory.day,
    GamePhase.night: EventCategory.night,
    GamePhase.feast: EventCategory.feast,
    GamePhase.arena_event: EventCategory.arena_event,
}


def _now() -> datetime:
    return datetime.now(tz=UTC)


def next_phase_and_day(phase: GamePhase, day: int) -> tuple[GamePhase, int]:
    """Fixed day/night cycle. Phases outside the cycle are returned unchanged."""

    if phase == GamePhase.bloodbath:
        return GamePhase.day, 1
    if phase == GamePhase.day:
        return GamePhase.night, day
    if phase == GamePhase.night:
        return GamePhase.day, day + 1
    if phase in {GamePhase.feast, GamePhase.arena_event}:
        return GamePhase.day, day
    return phase, day


def check_game_over(alive_tributes: Sequence[Tribute], deaths: Sequence[str]) -> tuple[bool, Tribute | None]:
    dead = set(deaths)
    remaining = [t for t in alive_tributes if t.id not in dead]
    winner = remaining[0] if len(remaining) == 1 else None
    return len(remaining) <= 1, winner


def pick_template(
    pool: Sequence[EventTemplate],
    phase: GamePhase,
    *,
    rng: random.Random,
    policy: FatalityPolicy,
) -> EventTemplate:
    """Pick fatal vs. non-fatal by the phase's fatal rate, then uniformly within that half."""

    fatal = [t for t in pool if t.is_fatal]
    non_fatal = [t for t in pool if not t.is_fatal]

    if not fatal or not non_fatal:
        return rng.choice(list(pool))

    chosen = fatal if policy.should_select_fatal(phase, rng) else non_fatal
    return rng.choice(chosen)


def pick_shared_template(
    pool: Sequence[EventTemplate],
    phase: GamePhase,
    alive_count: int,
    *,
    rng: random.Random,
    policy: FatalityPolicy,
) -> EventTemplate:
    """One template for a whole arena event.

    Only templates whose size divides the roster are eligible, so every tribute is
    covered by the same template and no solo fallback is needed.
    """

    eligible = [t for t in pool if alive_count % t.tributes_involved == 0]
    return pick_template(eligible or pool, phase, rng=rng, policy=policy)


def build_event(
    template: EventTemplate,
    tributes: Sequence[Tribute],
    *,
    day: int,
    phase: GamePhase,
    rng: random.Random,
    gear: GearCatalog,
    now: datetime,
) -> GameEvent:
    text = render_event_text(
        template.text,
        tributes,
        requires_weapon=template.requires_weapon,
        requires_item=template.requires_item,
        rng=rng,
        gear=gear,
    )

    deaths = [tributes[i].id for i in template.deaths]

    killer: str | None = None
    if template.killer is not None and template.killer != ENVIRONMENTAL_SLOT:
        killer = tributes[template.killer].id

    return GameEvent(
        id=UUID(int=rng.getrandbits(128), version=4),
        day=day,
        phase=phase,
        template_id=template.id,
        text=text,
        tributes=[t.id for t in tributes],
        deaths=deaths,
        killer=killer,
        timestamp=now,
    )


def simulate_phase(
    alive_tributes: Sequence[Tribute],
    phase: GamePhase,
    day: int,
    *,
    rng: random.Random,
    catalog: EventCatalog,
    policy: FatalityPolicy = DEFAULT_FATALITY_POLICY,
    clock: Callable[[], datetime] = _now,
) -> SimulationStepResult:
    """Generate every event of one phase.

    Pure with respect to its inputs: tributes are not mutated and deaths are only
    reported. The caller applies them (one event at a time if it wants to).
    """

    category = PHASE_CATEGORIES.get(phase)
    if category is None:
        logger.debug("simulate_phase called with non-simulated phase %s", phase)
        return SimulationStepResult(new_phase=phase, new_day=day)

    pool = catalog.templates_for(category)
    solo = catalog.solo_templates(category)

    remaining = list(alive_tributes)
    rng.shuffle(remaining)

    shared: EventTemplate | None = None
    if phase == GamePhase.arena_event and pool and remaining:
        shared = pick_shared_template(pool, phase, len(remaining), rng=rng, policy=policy)

    events: list[GameEvent] = []
    deaths: list[str] = []

    while remaining and pool:
        template = shared or pick_template(pool, phase, rng=rng, policy=policy)

        if len(remaining) < template.tributes_involved:
            if not solo:
                # Leftover tributes idle this phase.
                break
            template = pick_template(solo, phase, rng=rng, policy=policy)

        involved = remaining[: template.tributes_involved]
        del remaining[: template.tributes_involved]

        event = build_event(template, involved, day=day, phase=phase, rng=rng, gear=catalog.gear, now=clock())
        events.append(event)
        deaths.extend(event.deaths)

    new_phase, new_day = next_phase_and_day(phase, day)
    is_game_over, winner = check_game_over(alive_tributes, deaths)

    logger.info(
        "Simulated %s day %d: %d events, %d deaths, %d idle",
        phase.value,
        day,
        len(events),
        len(deaths),
        len(remaining),
    )

    return SimulationStepResult(
        events=events,
        deaths=deaths,
        new_phase=GamePhase.finished if is_game_over else new_phase,
        new_day=new_day,
        is_game_over=is_game_over,
        winner=winner,
    )


def trigger_special_event(
    alive_tributes: Sequence[Tribute],
    event_type: Literal[GamePhase.feast, GamePhase.arena_event],
    day: int,
    *,
    rng: random.Random,
    catalog: EventCatalog,
    policy: FatalityPolicy = DEFAULT_FATALITY_POLICY,
) -> SimulationStepResult:
    if event_type not in {GamePhase.feast, GamePhase.arena_event}:
        raise ValueError(f"Not a special event phase: {event_type}")
    return simulate_phase(alive_tributes, event_type, day, rng=rng, catalog=catalog, policy=policy)
