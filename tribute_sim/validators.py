from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from tribute_sim.api.models import GamePhase, GameState


@dataclass(frozen=True, slots=True)
class ValidationContext:
    game_id: str
    action: str


class ActionValidator(ABC):
    """A small, composable validation unit for an incoming action."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class PhaseValidator(ActionValidator):
    allowed_phases: set[GamePhase]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.current_phase not in self.allowed_phases:
            allowed = ",".join(sorted(p.value for p in self.allowed_phases))
            raise ValueError(
                f"Action '{ctx.action}' not allowed in phase '{state.current_phase.value}' (allowed: {allowed})"
            )


@dataclass(frozen=True, slots=True)
class NoPendingEventsValidator(ActionValidator):
    """The next phase must see only deaths that were actually applied."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        pending = len(state.pending_events)
        if pending:
            raise ValueError(f"Action '{ctx.action}' not allowed with {pending} unrevealed event(s) pending")


@dataclass(frozen=True, slots=True)
class HasPendingEventsValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if not state.pending_events:
            raise ValueError("No pending events to reveal")


@dataclass(frozen=True, slots=True)
class RunningGameValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if not state.is_running:
            raise ValueError("Game is finished")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[ActionValidator, ...]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "tick": ValidatorPipeline(
        validators=(
            RunningGameValidator(),
            PhaseValidator(allowed_phases={GamePhase.bloodbath, GamePhase.day, GamePhase.night}),
            NoPendingEventsValidator(),
        )
    ),
    "reveal": ValidatorPipeline(validators=(RunningGameValidator(), HasPendingEventsValidator())),
    "reset": ValidatorPipeline(validators=()),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
