from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass, field

from tribute_sim.api.models import GamePhase

logger = logging.getLogger(__name__)

FEAST_MIN_DAY = 3
FEAST_COOLDOWN_DAYS = 3
FEAST_CHANCE = 0.20

ARENA_EVENT_MIN_DAY = 2
ARENA_EVENT_COOLDOWN_DAYS = 2
ARENA_EVENT_CROWDED_THRESHOLD = 10
ARENA_EVENT_CHANCE_CROWDED = 0.25
ARENA_EVENT_CHANCE = 0.15


def _default_fatal_rates() -> dict[GamePhase, float]:
    return {
        GamePhase.bloodbath: 0.45,
        GamePhase.day: 0.25,
        GamePhase.night: 0.20,
        GamePhase.feast: 0.45,
        GamePhase.arena_event: 0.50,
    }


@dataclass(frozen=True, slots=True)
class FatalityPolicy:
    """Per-phase probability of drawing from the fatal half of a template pool."""

    rates: dict[GamePhase, float] = field(default_factory=_default_fatal_rates)

    def __post_init__(self) -> None:
        for phase, rate in self.rates.items():
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"Fatal rate for {phase.value} must be within [0, 1], got {rate}")

    def rate_for(self, phase: GamePhase) -> float:
        return self.rates.get(phase, 0.0)

    def should_select_fatal(self, phase: GamePhase, rng: random.Random) -> bool:
        return rng.random() < self.rate_for(phase)


DEFAULT_FATALITY_POLICY = FatalityPolicy()


def fatality_policy_from_env() -> FatalityPolicy:
    """Defaults, overridden by TRIBUTE_SIM_FATAL_RATE_<PHASE> (e.g. ..._ARENA_EVENT=0.6)."""

    rates = _default_fatal_rates()
    for phase in rates:
        key = f"TRIBUTE_SIM_FATAL_RATE_{phase.name.upper()}"
        raw = os.environ.get(key)
        if raw is None or not raw.strip():
            continue
        try:
            rates[phase] = float(raw)
        except ValueError as e:
            raise ValueError(f"{key} must be a number, got {raw!r}") from e
    return FatalityPolicy(rates=rates)


def should_trigger_feast(day: int, last_feast_day: int | None = None, *, rng: random.Random) -> bool:
    if day <= FEAST_MIN_DAY:
        return False
    if last_feast_day is not None and day - last_feast_day < FEAST_COOLDOWN_DAYS:
        return False
    return rng.random() < FEAST_CHANCE


def should_trigger_arena_event(
    day: int,
    alive_count: int,
    last_arena_event_day: int | None = None,
    *,
    rng: random.Random,
) -> bool:
    if day <= ARENA_EVENT_MIN_DAY:
        return False
    if last_arena_event_day is not None and day - last_arena_event_day < ARENA_EVENT_COOLDOWN_DAYS:
        return False
    chance = ARENA_EVENT_CHANCE_CROWDED if alive_count > ARENA_EVENT_CROWDED_THRESHOLD else ARENA_EVENT_CHANCE
    return rng.random() < chance


def choose_day_phase(
    day: int,
    alive_count: int,
    *,
    last_feast_day: int | None,
    last_arena_event_day: int | None,
    rng: random.Random,
) -> GamePhase:
    """Which phase a daytime tick actually runs: feast wins over an arena event."""

    if should_trigger_feast(day, last_feast_day, rng=rng):
        logger.info("Feast triggered on day %d", day)
        return GamePhase.feast
    if should_trigger_arena_event(day, alive_count, last_arena_event_day, rng=rng):
        logger.info("Arena event triggered on day %d (%d alive)", day, alive_count)
        return GamePhase.arena_event
    return GamePhase.day
