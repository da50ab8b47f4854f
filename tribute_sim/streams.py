from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import cast

import redis

from tribute_sim.api.models import GameEvent, GameState


@dataclass(frozen=True, slots=True)
class Feed:
    """Spectator feed of revealed events for one game (a Redis Stream)."""

    game_id: str

    @property
    def key(self) -> str:
        return f"feed:{self.game_id}"


def feed_entry_for_event(*, state: GameState, event: GameEvent) -> tuple[str, dict[str, str]]:
    return (
        Feed(game_id=str(state.game_id)).key,
        {
            "type": "event_revealed",
            "event_id": str(event.id),
            "day": str(event.day),
            "phase": event.phase.value,
            "template_id": event.template_id,
            "text": event.text,
            "deaths": ",".join(event.deaths),
            "killer": event.killer or "",
        },
    )


def feed_entry_for_game_over(*, state: GameState) -> tuple[str, dict[str, str]]:
    return (
        Feed(game_id=str(state.game_id)).key,
        {
            "type": "game_finished",
            "day": str(state.current_day),
            "winner_id": state.winner_id or "",
        },
    )


def publish_many(*, r: redis.Redis, entries: Sequence[tuple[str, Mapping[str, str]]]) -> list[str]:
    ids: list[str] = []
    for key, fields in entries:
        stream_id = r.xadd(key, {str(k): str(v) for k, v in fields.items()})
        ids.append(cast(str, stream_id))
    return ids


def read_feed(*, r: redis.Redis, game_id: str, count: int = 50, start: str = "-", end: str = "+") -> list[dict[str, object]]:
    entries = r.xrange(Feed(game_id=game_id).key, min=start, max=end, count=count)
    return [{"id": mid, "fields": fields} for mid, fields in entries]


def clear_feed(*, r: redis.Redis, game_id: str) -> None:
    """Drop a game's feed, e.g. when the game is reset and its reveals no longer apply."""

    r.delete(Feed(game_id=game_id).key)
