from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import InvalidStateValue, TransitionNotAllowed

from tribute_sim.api.models import GamePhase, GameState
from tribute_sim.roster import advance_phase


class GameFSM(StateMachine):
    """Guard around the caller-side phase clock of a GameState.

    The engine computes the next phase; the FSM only checks that the move is legal
    before it is written back to the model. Feast and arena events run inside a day
    tick and hand back to day, hence the `special` day -> day transition.
    """

    setup = State(GamePhase.setup.value, value=GamePhase.setup.value, initial=True)
    bloodbath = State(GamePhase.bloodbath.value, value=GamePhase.bloodbath.value)
    day = State(GamePhase.day.value, value=GamePhase.day.value)
    night = State(GamePhase.night.value, value=GamePhase.night.value)
    finished = State(GamePhase.finished.value, value=GamePhase.finished.value, final=True)

    start = setup.to(bloodbath)
    dawn = bloodbath.to(day) | night.to(day)
    dusk = day.to(night)
    special = day.to(day)
    finish = bloodbath.to(finished) | day.to(finished) | night.to(finished)

    def __init__(self, game: GameState):
        self.game = game
        try:
            super().__init__(start_value=game.current_phase.value)
        except InvalidStateValue as e:
            raise ValueError(f"Game clock cannot rest in phase '{game.current_phase.value}'") from e

    @property
    def phase(self) -> GamePhase:
        return GamePhase(str(self.current_state.value))

    @property
    def is_final(self) -> bool:
        return bool(self.current_state.final)

    def _event_for(self, target: GamePhase) -> str:
        if target == GamePhase.bloodbath:
            return "start"
        if target == GamePhase.night:
            return "dusk"
        if target == GamePhase.finished:
            return "finish"
        if target == GamePhase.day:
            return "special" if self.phase == GamePhase.day else "dawn"
        raise ValueError(f"Game clock cannot rest in phase '{target.value}'")

    def advance_to(self, target: GamePhase) -> None:
        event = self._event_for(target)
        try:
            self.send(event)
        except TransitionNotAllowed as e:
            raise ValueError(f"Phase change {self.phase.value} -> {target.value} not allowed") from e

    def sync_phase_to_model(self, *, day: int | None = None) -> None:
        advance_phase(self.game, self.phase, day)
