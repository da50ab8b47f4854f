"""Play one game to completion without Redis or the API and print the event log.

Usage:
    python scripts/run_simulation.py --seed 42
    python scripts/run_simulation.py --names names.txt --max-ticks 200

`names.txt` holds one tribute per line as `name[,gender]`.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from tribute_sim.api.models import GamePhase, GameState, Gender, TributeInput
from tribute_sim.catalog.registry import load_event_catalog
from tribute_sim.catalog.startup import catalog_root
from tribute_sim.engine.policy import fatality_policy_from_env
from tribute_sim.game_loop import reveal_next_event, run_phase
from tribute_sim.game_store import new_game_state
from tribute_sim.recap import fallen_summary, format_event_line, game_recap

logger = logging.getLogger("run_simulation")


def _read_names(path: Path) -> list[TributeInput]:
    out: list[TributeInput] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        name, _, gender = line.partition(",")
        out.append(TributeInput(name=name.strip(), gender=Gender(gender.strip() or "other")))
    return out


def play(state: GameState, *, max_ticks: int) -> None:
    catalog = load_event_catalog(root=catalog_root())
    policy = fatality_policy_from_env()

    for _ in range(max_ticks):
        if not state.is_running:
            break

        phase, day = state.current_phase, state.current_day
        run_phase(state, catalog=catalog, policy=policy)

        while state.is_running and state.pending_events:
            print(format_event_line(reveal_next_event(state)))

        # Cannon shots are announced at the end of the bloodbath and of each night.
        if phase in {GamePhase.bloodbath, GamePhase.night}:
            print(fallen_summary(state, day))

    if state.is_running:
        logger.warning("Stopped after %d ticks without a winner", max_ticks)

    print()
    print(game_recap(state))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--names", type=Path, default=None, help="file with one tribute per line")
    parser.add_argument("--max-ticks", type=int, default=500)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    tributes = _read_names(args.names) if args.names else None
    state = new_game_state(tributes=tributes, seed=args.seed)
    print(f"Game {state.game_id} (seed={state.seed}), {len(state.tributes)} tributes")

    play(state, max_ticks=args.max_ticks)


if __name__ == "__main__":
    main()
