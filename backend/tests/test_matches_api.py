import asyncio
import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.models import Player


@pytest.fixture()
def darts_client(api_client):
    client, session_maker = api_client

    async def seed_players() -> None:
        async with session_maker() as session:
            session.add_all(
                [
                    Player(id="anna", name="Anna"),
                    Player(id="ben", name="Ben"),
                    Player(id="cleo", name="Cleo"),
                ]
            )
            await session.commit()

    asyncio.run(seed_players())
    return client


def _create(client, **body):
    body.setdefault("playerIds", ["anna", "ben"])
    resp = client.post("/api/v0/matches", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()["id"]


def _throw(client, mid, player_id, kind, number=None):
    return client.post(
        f"/api/v0/matches/{mid}/throws",
        json={"playerId": player_id, "hit": {"kind": kind, "number": number}},
    )


def _remaining(state):
    return {entry["playerId"]: entry["remaining"] for entry in state["scoreboard"]}


def test_list_modes_includes_default_rules(api_client):
    client, _ = api_client
    resp = client.get("/api/v0/modes")
    assert resp.status_code == 200
    catalog = {m["id"]: m for m in resp.json()}
    assert set(catalog) == {"301", "501", "x01", "cricket", "around_the_clock"}
    assert catalog["501"]["defaultRules"]["startingScore"] == 501
    assert catalog["501"]["defaultRules"]["doubleOut"] is True
    assert catalog["cricket"]["defaultRules"]["startingScore"] is None


def test_create_match_and_read_state(darts_client):
    mid = _create(darts_client, mode="301")
    resp = darts_client.get(f"/api/v0/matches/{mid}")
    assert resp.status_code == 200
    state = resp.json()
    assert state["mode"] == "301"
    assert state["playerIds"] == ["anna", "ben"]
    assert state["currentPlayerId"] == "anna"
    assert state["dartIndex"] == 0
    assert state["isActive"] is True
    assert _remaining(state) == {"anna": 301, "ben": 301}


def test_create_match_requires_known_players(darts_client):
    resp = darts_client.post("/api/v0/matches", json={"playerIds": ["anna", "ghost"]})
    assert resp.status_code == 404
    assert resp.json()["code"] == "player_not_found"


def test_create_match_rejects_duplicate_players(darts_client):
    resp = darts_client.post("/api/v0/matches", json={"playerIds": ["anna", "anna"]})
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"


@pytest.mark.parametrize(
    "body",
    [
        {"mode": "shanghai"},
        {"mode": "x01"},
        {"mode": "x01", "rules": {"startingScore": -1}},
    ],
)
def test_create_match_rejects_invalid_configuration(darts_client, body):
    body["playerIds"] = ["anna", "ben"]
    resp = darts_client.post("/api/v0/matches", json=body)
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_configuration"


def test_throws_count_down_and_rotate(darts_client):
    mid = _create(darts_client)
    for _ in range(3):
        resp = _throw(darts_client, mid, "anna", "triple", 20)
        assert resp.status_code == 200
    body = resp.json()
    assert body["bust"] is False
    assert body["throw"]["hit"] == {"kind": "triple", "number": 20, "points": 60, "label": "T20"}
    assert body["state"]["currentPlayerId"] == "ben"
    assert _remaining(body["state"]) == {"anna": 321, "ben": 501}


def test_throw_out_of_turn_is_conflict(darts_client):
    mid = _create(darts_client)
    resp = _throw(darts_client, mid, "ben", "single", 20)
    assert resp.status_code == 409
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["code"] == "wrong_turn"


def test_numbered_hit_requires_number(darts_client):
    mid = _create(darts_client)
    resp = darts_client.post(
        f"/api/v0/matches/{mid}/throws",
        json={"playerId": "anna", "hit": {"kind": "double"}},
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"


def test_bust_passes_turn_across_requests(darts_client):
    mid = _create(darts_client, mode="x01", rules={"startingScore": 40})
    _throw(darts_client, mid, "anna", "single", 20)
    resp = _throw(darts_client, mid, "anna", "triple", 20)
    body = resp.json()
    assert body["bust"] is True
    assert len(body["discardedThrowIds"]) == 2
    assert _remaining(body["state"])["anna"] == 40

    state = darts_client.get(f"/api/v0/matches/{mid}").json()
    assert state["currentPlayerId"] == "ben"
    assert state["throwsCount"] == 0
    assert _throw(darts_client, mid, "ben", "single", 1).status_code == 200


def test_win_completes_match_and_undo_reopens_it(darts_client):
    mid = _create(darts_client, mode="x01", rules={"startingScore": 20})
    body = _throw(darts_client, mid, "anna", "double", 10).json()
    assert body["win"] is True
    assert body["state"]["winnerId"] == "anna"
    assert body["state"]["isActive"] is False

    completed = darts_client.get("/api/v0/matches/completed").json()
    assert [c["matchId"] for c in completed] == [mid]
    assert completed[0]["winnerId"] == "anna"
    assert completed[0]["throwsCount"] == 1

    resp = _throw(darts_client, mid, "ben", "single", 1)
    assert resp.status_code == 409
    assert resp.json()["code"] == "match_inactive"

    undo = darts_client.post(f"/api/v0/matches/{mid}/undo").json()
    assert undo["undone"]["playerId"] == "anna"
    assert undo["state"]["isActive"] is True
    assert undo["state"]["winnerId"] is None
    assert darts_client.get("/api/v0/matches/completed").json() == []


def test_undo_on_empty_log(darts_client):
    mid = _create(darts_client)
    resp = darts_client.post(f"/api/v0/matches/{mid}/undo")
    assert resp.status_code == 200
    assert resp.json()["undone"] is None


def test_switch_turn_endpoint(darts_client):
    mid = _create(darts_client)
    _throw(darts_client, mid, "anna", "single", 5)
    state = darts_client.post(f"/api/v0/matches/{mid}/switch-turn").json()
    assert state["currentPlayerId"] == "ben"
    assert state["dartIndex"] == 0
    assert darts_client.get(f"/api/v0/matches/{mid}").json()["currentPlayerId"] == "ben"


def test_remove_player_endpoint(darts_client):
    mid = _create(darts_client, playerIds=["anna", "ben", "cleo"])
    resp = darts_client.delete(f"/api/v0/matches/{mid}/players/anna")
    assert resp.status_code == 200
    state = resp.json()
    assert state["playerIds"] == ["ben", "cleo"]
    assert state["currentPlayerId"] == "ben"

    resp = darts_client.delete(f"/api/v0/matches/{mid}/players/anna")
    assert resp.status_code == 404
    assert resp.json()["code"] == "player_not_in_match"


def test_history_and_stats(darts_client):
    mid = _create(darts_client)
    for number in (20, 19, 18):
        _throw(darts_client, mid, "anna", "single", number)
    _throw(darts_client, mid, "ben", "outer_bull")

    history = darts_client.get(f"/api/v0/matches/{mid}/history").json()
    assert [t["orderIndex"] for t in history] == [0, 1, 2, 3]
    ben = darts_client.get(f"/api/v0/matches/{mid}/history", params={"playerId": "ben"}).json()
    assert [t["hit"]["label"] for t in ben] == ["25"]

    stats = {s["playerId"]: s for s in darts_client.get(f"/api/v0/matches/{mid}/stats").json()}
    assert stats["anna"] == {"playerId": "anna", "dartsThrown": 3, "pointsPerDart": 19.0}
    assert stats["ben"]["pointsPerDart"] == 25.0


def test_unknown_match_returns_problem(darts_client):
    resp = darts_client.get("/api/v0/matches/nope")
    assert resp.status_code == 404
    assert resp.json()["code"] == "match_not_found"


def test_kept_double_in_persists_across_requests(darts_client):
    mid = _create(
        darts_client,
        mode="x01",
        rules={"startingScore": 40, "doubleIn": True, "revokeDoubleInOnBust": False},
    )
    _throw(darts_client, mid, "anna", "double", 10)
    assert _throw(darts_client, mid, "anna", "triple", 20).json()["bust"] is True
    assert darts_client.get(f"/api/v0/matches/{mid}").json()["doubledIn"] == ["anna"]

    for _ in range(3):
        _throw(darts_client, mid, "ben", "miss")
    body = _throw(darts_client, mid, "anna", "single", 20).json()
    assert _remaining(body["state"])["anna"] == 20


def test_switching_round_the_table_gives_a_fresh_turn(darts_client):
    mid = _create(darts_client)
    _throw(darts_client, mid, "anna", "single", 20)
    _throw(darts_client, mid, "anna", "single", 20)
    darts_client.post(f"/api/v0/matches/{mid}/switch-turn")
    darts_client.post(f"/api/v0/matches/{mid}/switch-turn")

    state = darts_client.get(f"/api/v0/matches/{mid}").json()
    assert state["currentPlayerId"] == "anna"
    assert state["dartIndex"] == 0
