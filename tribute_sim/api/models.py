from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field


# Recorded as `killed_by` when no tribute is credited with a death.
ENVIRONMENTAL_KILLER = "arena"


class Gender(StrEnum):
    male = "male"
    female = "female"
    other = "other"


class GamePhase(StrEnum):
    setup = "setup"
    bloodbath = "bloodbath"
    day = "day"
    night = "night"
    feast = "feast"
    arena_event = "arena-event"
    finished = "finished"


class Tribute(BaseModel):
    id: str
    name: str
    gender: Gender = Gender.other
    image_url: str = ""
    district_id: int

    is_alive: bool = True
    kills: int = 0

    # Set once, when the tribute's death is applied.
    death_day: int | None = None
    death_phase: GamePhase | None = None
    # Tribute id of the killer, or ENVIRONMENTAL_KILLER.
    killed_by: str | None = None


class District(BaseModel):
    id: int
    tribute1_id: str
    tribute2_id: str


class GameEvent(BaseModel):
    """A template instantiated against specific tributes. Never mutated after creation."""

    id: UUID
    day: int
    phase: GamePhase
    template_id: str
    text: str
    tributes: list[str]
    deaths: list[str] = Field(default_factory=list)
    killer: str | None = None
    timestamp: datetime


class SimulationStepResult(BaseModel):
    events: list[GameEvent] = Field(default_factory=list)
    deaths: list[str] = Field(default_factory=list)
    new_phase: GamePhase
    new_day: int
    is_game_over: bool = False
    winner: Tribute | None = None


class GameState(BaseModel):
    game_id: UUID
    created_at: datetime
    last_updated_at: datetime

    # For reproducibility/debugging. Each tick derives its own RNG from (seed, tick).
    seed: int
    tick: int = 0

    current_day: int = 0
    current_phase: GamePhase = GamePhase.setup
    is_running: bool = False

    tributes: list[Tribute] = Field(default_factory=list)
    districts: list[District] = Field(default_factory=list)

    # Append-only, insertion ordered.
    event_log: list[GameEvent] = Field(default_factory=list)
    # Number of leading event_log entries whose deaths have been applied.
    revealed_count: int = 0

    last_feast_day: int | None = None
    last_arena_event_day: int | None = None

    winner_id: str | None = None

    @property
    def pending_events(self) -> list[GameEvent]:
        return self.event_log[self.revealed_count :]


class TributeInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    gender: Gender = Gender.other
    image_url: str = ""


class GameCreateRequest(BaseModel):
    # Empty => the default cast of 24.
    tributes: list[TributeInput] = Field(default_factory=list, max_length=48)


class RevealResponse(BaseModel):
    event: GameEvent
    state: GameState


class GameListResponse(BaseModel):
    games: list[GameState]


class RecapResponse(BaseModel):
    game_id: UUID
    text: str
