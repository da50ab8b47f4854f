from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

from tribute_sim.api.models import GameState

logger = logging.getLogger(__name__)


class GameWebSocketHub:
    """In-process WebSocket pub/sub keyed by game_id.

    Clients are only told *that* a game changed (plus the clock); they re-fetch state over REST.
    """

    def __init__(self) -> None:
        self._by_game: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, game_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_game[game_id].add(websocket)

    async def disconnect(self, game_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            conns = self._by_game.get(game_id)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._by_game.pop(game_id, None)

    async def broadcast(self, game_id: str, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._by_game.get(game_id, set()))

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                logger.debug("Dropping websocket for game %s", game_id, exc_info=True)
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._by_game.get(game_id, set()).discard(ws)

    async def game_updated(self, state: GameState) -> None:
        await self.broadcast(
            str(state.game_id),
            {
                "type": "game_updated",
                "game_id": str(state.game_id),
                "phase": state.current_phase.value,
                "day": state.current_day,
                "pending_events": len(state.pending_events),
            },
        )


hub = GameWebSocketHub()
