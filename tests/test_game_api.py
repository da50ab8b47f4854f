from __future__ import annotations

from uuid import uuid4

import fakeredis
from fastapi.testclient import TestClient


def _create(client: TestClient, **body) -> dict:  # type: ignore[no-untyped-def]
    resp = client.post("/game", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_and_fetch_game(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    state = _create(client)
    assert len(state["tributes"]) == 24
    assert len(state["districts"]) == 12
    assert state["current_phase"] == "bloodbath"
    assert state["current_day"] == 0
    assert state["is_running"] is True

    gid = state["game_id"]
    fetched = client.get(f"/game/{gid}").json()
    assert fetched["game_id"] == gid
    assert fetched["seed"] == state["seed"]

    listed = client.get("/game").json()["games"]
    assert [g["game_id"] for g in listed] == [gid]


def test_create_game_with_custom_roster(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    state = _create(client, tributes=[{"name": "Ash", "gender": "male"}, {"name": "Bree", "gender": "female"}])
    assert [t["name"] for t in state["tributes"]] == ["Ash", "Bree"]
    assert state["districts"] == [{"id": 1, "tribute1_id": "t1", "tribute2_id": "t2"}]


def test_create_game_rejects_bad_rosters(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    odd = client.post("/game", json={"tributes": [{"name": "A"}, {"name": "B"}, {"name": "C"}]})
    assert odd.status_code == 422
    assert "even" in odd.json()["detail"]

    empty_name = client.post("/game", json={"tributes": [{"name": ""}, {"name": "B"}]})
    assert empty_name.status_code == 422


def test_tick_then_reveal_publishes_feed(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    gid = _create(client)["game_id"]

    step = client.post(f"/game/{gid}/tick")
    assert step.status_code == 200
    step_body = step.json()
    assert step_body["new_phase"] == "day"
    assert step_body["new_day"] == 1
    events = step_body["events"]
    assert events

    again = client.post(f"/game/{gid}/tick")
    assert again.status_code == 422
    assert "unrevealed" in again.json()["detail"]

    revealed = client.post(f"/game/{gid}/reveal")
    assert revealed.status_code == 200
    body = revealed.json()
    assert body["event"]["id"] == events[0]["id"]
    assert body["state"]["revealed_count"] == 1

    feed = client.get(f"/games/{gid}/feed").json()
    assert feed["game_id"] == gid
    assert len(feed["messages"]) == 1
    fields = feed["messages"][0]["fields"]
    assert fields["type"] == "event_revealed"
    assert fields["event_id"] == events[0]["id"]
    assert fields["template_id"] == events[0]["template_id"]

    assert len(r.xrange(f"feed:{gid}")) == 1


def test_reveal_without_pending_events_is_422(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    gid = _create(client)["game_id"]

    resp = client.post(f"/game/{gid}/reveal")
    assert resp.status_code == 422
    assert resp.json()["detail"] == "No pending events to reveal"


def test_unknown_game_is_404(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    gid = str(uuid4())

    assert client.get(f"/game/{gid}").status_code == 404
    assert client.post(f"/game/{gid}/tick").status_code == 404
    assert client.post(f"/game/{gid}/reveal").status_code == 404
    assert client.get(f"/game/{gid}/recap").status_code == 404


def test_generic_action_endpoint(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    gid = _create(client)["game_id"]

    resp = client.post(f"/games/{gid}/actions/tick")
    assert resp.status_code == 200
    state = resp.json()
    assert state["current_phase"] == "day"
    assert state["tick"] == 1
    assert len(state["event_log"]) > state["revealed_count"]

    resp = client.post(f"/games/{gid}/actions/reveal")
    assert resp.status_code == 200
    assert resp.json()["revealed_count"] == 1

    bad = client.post(f"/games/{gid}/actions/vote")
    assert bad.status_code == 422
    assert bad.json()["detail"] == "Unknown action: vote"


def test_reset_and_recap(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    gid = _create(client)["game_id"]

    assert client.post(f"/game/{gid}/tick").status_code == 200
    assert client.post(f"/game/{gid}/reveal").status_code == 200

    recap = client.get(f"/game/{gid}/recap").json()
    assert recap["game_id"] == gid
    assert recap["text"].startswith("Day 1, phase day.")

    state = client.post(f"/game/{gid}/reset").json()
    assert state["tick"] == 0
    assert state["current_phase"] == "bloodbath"
    assert state["event_log"] == []
    assert all(t["is_alive"] for t in state["tributes"])

    recap = client.get(f"/game/{gid}/recap").json()
    assert "Alive (24)" in recap["text"]


def test_feed_count_is_bounded(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    gid = _create(client)["game_id"]

    assert client.get(f"/games/{gid}/feed", params={"count": 0}).status_code == 422
    assert client.get(f"/games/{gid}/feed", params={"count": 501}).status_code == 422
    assert client.get(f"/games/{gid}/feed").json()["messages"] == []


def test_healthcheck_and_info(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    assert client.get("/healthcheck").json() == {"status": "ok"}
    info = client.get("/info").json()
    assert info["name"] == "tribute-sim"


def test_reset_clears_the_feed(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    gid = _create(client)["game_id"]

    assert client.post(f"/game/{gid}/tick").status_code == 200
    assert client.post(f"/game/{gid}/reveal").status_code == 200
    assert len(client.get(f"/games/{gid}/feed").json()["messages"]) == 1

    assert client.post(f"/game/{gid}/reset").status_code == 200
    assert client.get(f"/games/{gid}/feed").json()["messages"] == []
    assert r.exists(f"feed:{gid}") == 0

    assert client.post(f"/game/{gid}/tick").status_code == 200
    revealed = client.post(f"/game/{gid}/reveal").json()
    messages = client.get(f"/games/{gid}/feed").json()["messages"]
    assert [m["fields"]["event_id"] for m in messages] == [revealed["event"]["id"]]
