from __future__ import annotations

from tribute_sim.api.models import ENVIRONMENTAL_KILLER, GameEvent, GameState
from tribute_sim.engine.text import format_tribute_list, format_tribute_name, pronoun
from tribute_sim.roster import alive_tributes, dead_tributes, fallen_on_day, tribute_by_id


def _killer_label(state: GameState, killed_by: str | None) -> str:
    if killed_by is None or killed_by == ENVIRONMENTAL_KILLER:
        return "the arena"
    killer = tribute_by_id(state, killed_by)
    return killer.name if killer is not None else killed_by


def format_event_line(event: GameEvent) -> str:
    return f"[Day {event.day} / {event.phase.value}] {event.text}"


def fallen_summary(state: GameState, day: int) -> str:
    """Cannon shots for one day."""

    fallen = fallen_on_day(state, day)
    if not fallen:
        return f"No cannon shots on day {day}."
    noun = "cannon shot" if len(fallen) == 1 else "cannon shots"
    names = format_tribute_list(fallen)
    return f"{len(fallen)} {noun} on day {day}: {names}."


def kill_leaderboard(state: GameState, *, limit: int = 5) -> list[tuple[str, int]]:
    ranked = sorted((t for t in state.tributes if t.kills > 0), key=lambda t: (-t.kills, t.name))
    return [(t.name, t.kills) for t in ranked[:limit]]


def game_recap(state: GameState) -> str:
    lines: list[str] = [f"Day {state.current_day}, phase {state.current_phase.value}."]

    alive = alive_tributes(state)
    lines.append(f"Alive ({len(alive)}): {format_tribute_list(alive) or 'nobody'}.")

    dead = sorted(dead_tributes(state), key=lambda t: (t.death_day or 0, t.name))
    if dead:
        lines.append("Fallen:")
        for t in dead:
            lines.append(
                f"- {format_tribute_name(t, include_district=True)}: day {t.death_day}"
                f" ({t.death_phase.value if t.death_phase else '?'}), killed by {_killer_label(state, t.killed_by)}"
            )

    board = kill_leaderboard(state)
    if board:
        lines.append("Most kills: " + ", ".join(f"{name} ({kills})" for name, kills in board) + ".")

    if not state.is_running and state.event_log:
        winner = tribute_by_id(state, state.winner_id) if state.winner_id else None
        if winner is not None:
            lines.append(
                f"Winner: {format_tribute_name(winner, include_district=True)},"
                f" with {winner.kills} kill(s) to {pronoun(winner.gender, 'possessive')} name."
            )
        else:
            lines.append("No victor: nobody survived.")

    return "\n".join(lines)
