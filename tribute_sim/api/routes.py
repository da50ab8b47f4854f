from __future__ import annotations

from uuid import UUID

import redis
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from tribute_sim.actions import ACTION_NAMES, ActionName, ActionResult, dispatch_action
from tribute_sim.api.deps import get_event_catalog, get_fatality_policy, get_redis
from tribute_sim.api.models import (
    GameCreateRequest,
    GameListResponse,
    GameState,
    RecapResponse,
    RevealResponse,
    SimulationStepResult,
)
from tribute_sim.catalog.registry import EventCatalog
from tribute_sim.engine.policy import FatalityPolicy
from tribute_sim.game_store import create_game, get_game, list_games
from tribute_sim.recap import game_recap
from tribute_sim.streams import read_feed
from tribute_sim.websocket_hub import hub

router = APIRouter()


@router.websocket("/ws/game/{game_id}")
async def game_updates_ws(websocket: WebSocket, game_id: UUID) -> None:
    gid = str(game_id)
    await hub.connect(gid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(gid, websocket)
    except Exception:
        await hub.disconnect(gid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


async def _run_action(
    *,
    r: redis.Redis,
    game_id: UUID,
    action: ActionName,
    catalog: EventCatalog,
    policy: FatalityPolicy,
) -> ActionResult:
    if get_game(r=r, game_id=game_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    try:
        result = dispatch_action(r=r, game_id=game_id, action=action, catalog=catalog, policy=policy)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await hub.game_updated(result.state)
    return result


@router.post("/game", response_model=GameState, status_code=status.HTTP_201_CREATED)
async def create_game_route(payload: GameCreateRequest, r: redis.Redis = Depends(get_redis)) -> GameState:
    try:
        state = create_game(r=r, tributes=payload.tributes)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await hub.game_updated(state)
    return state


@router.get("/game", response_model=GameListResponse)
async def list_games_route(r: redis.Redis = Depends(get_redis)) -> GameListResponse:
    return GameListResponse(games=list_games(r=r))


@router.get("/game/{game_id}", response_model=GameState)
async def get_game_route(game_id: UUID, r: redis.Redis = Depends(get_redis)) -> GameState:
    state = get_game(r=r, game_id=game_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return state


@router.post("/game/{game_id}/tick", response_model=SimulationStepResult)
async def tick_route(
    game_id: UUID,
    r: redis.Redis = Depends(get_redis),
    catalog: EventCatalog = Depends(get_event_catalog),
    policy: FatalityPolicy = Depends(get_fatality_policy),
) -> SimulationStepResult:
    """Simulate the current phase. Its events are queued; deaths apply on reveal."""

    result = await _run_action(r=r, game_id=game_id, action="tick", catalog=catalog, policy=policy)
    assert result.step is not None
    return result.step


@router.post("/game/{game_id}/reveal", response_model=RevealResponse)
async def reveal_route(
    game_id: UUID,
    r: redis.Redis = Depends(get_redis),
    catalog: EventCatalog = Depends(get_event_catalog),
    policy: FatalityPolicy = Depends(get_fatality_policy),
) -> RevealResponse:
    result = await _run_action(r=r, game_id=game_id, action="reveal", catalog=catalog, policy=policy)
    assert result.event is not None
    return RevealResponse(event=result.event, state=result.state)


@router.post("/game/{game_id}/reset", response_model=GameState)
async def reset_route(
    game_id: UUID,
    r: redis.Redis = Depends(get_redis),
    catalog: EventCatalog = Depends(get_event_catalog),
    policy: FatalityPolicy = Depends(get_fatality_policy),
) -> GameState:
    result = await _run_action(r=r, game_id=game_id, action="reset", catalog=catalog, policy=policy)
    return result.state


@router.post("/games/{game_id}/actions/{action}", response_model=GameState)
async def generic_action_route(
    game_id: UUID,
    action: str,
    r: redis.Redis = Depends(get_redis),
    catalog: EventCatalog = Depends(get_event_catalog),
    policy: FatalityPolicy = Depends(get_fatality_policy),
) -> GameState:
    if action not in ACTION_NAMES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown action: {action}")
    act: ActionName = action  # type: ignore[assignment]
    result = await _run_action(r=r, game_id=game_id, action=act, catalog=catalog, policy=policy)
    return result.state


@router.get("/game/{game_id}/recap", response_model=RecapResponse)
async def recap_route(game_id: UUID, r: redis.Redis = Depends(get_redis)) -> RecapResponse:
    state = get_game(r=r, game_id=game_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return RecapResponse(game_id=state.game_id, text=game_recap(state))


@router.get("/games/{game_id}/feed")
async def get_feed_route(
    game_id: UUID,
    count: int = 50,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
) -> dict[str, object]:
    """Revealed events in reveal order, read from the game's feed stream."""

    if count < 1 or count > 500:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 500")

    try:
        messages = read_feed(r=r, game_id=str(game_id), count=count, start=start, end=end)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return {"game_id": str(game_id), "messages": messages}
