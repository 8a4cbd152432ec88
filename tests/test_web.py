from __future__ import annotations

import time

import pytest

from stacktoe import GameController, Settings
from web import create_app
from web.app import _wants_wait


@pytest.fixture
def client():
    settings = Settings(search_depth=2, suggestion_delay_s=0.0, ai_move_delay_s=0.0)
    controller = GameController(settings=settings)
    app = create_app(controller=controller, settings=settings)
    yield app.test_client()
    controller.close()


def stuck_board():
    board = [[] for _ in range(9)]
    board[0] = [{"owner": "opponent", "size": s} for s in (1, 2, 3)]
    board[1] = [{"owner": "opponent", "size": s} for s in (1, 2, 3)]
    board[5] = [{"owner": "opponent", "size": s} for s in (1, 2)]
    return board


def test_state_before_start(client):
    r = client.get("/api/state")
    assert r.status_code == 200
    data = r.get_json()
    assert data["started"] is False
    assert data["mode"] == "companion"


def test_training_move_gets_engine_reply(client):
    r = client.post("/api/new", json={"mode": "training", "first": "self"})
    assert r.status_code == 200
    assert r.get_json()["turn"] == "self"

    r = client.post("/api/move", json={"cell": 4, "player": "self", "size": "large", "wait": True})
    assert r.status_code == 200
    data = r.get_json()
    assert data["board"][4]["top"] == {"owner": "self", "size": 3}
    assert data["turn"] == "self"
    assert data["thinking"] is False
    placed = sum(len(cell["stack"]) for cell in data["board"])
    assert placed == 2
    assert data["inventories"]["self"]["large"] == 1


def test_select_then_move(client):
    client.post("/api/new", json={"mode": "companion", "first": "self"})
    r = client.post("/api/select", json={"player": "self", "size": 2})
    assert r.status_code == 200
    assert r.get_json()["selection"] == {"player": "self", "size": 2}
    r = client.post("/api/move", json={"cell": 0})
    assert r.status_code == 200
    assert r.get_json()["board"][0]["top"] == {"owner": "self", "size": 2}


def test_rejected_move_returns_unchanged_state(client):
    client.post("/api/new", json={"mode": "companion", "first": "self"})
    client.post("/api/move", json={"cell": 4, "player": "self", "size": 2})
    r = client.post("/api/move", json={"cell": 4, "player": "opponent", "size": 1})
    assert r.status_code == 400
    data = r.get_json()
    assert data["error"] == "Move rejected"
    assert data["state"]["board"][4]["top"] == {"owner": "self", "size": 2}
    assert data["state"]["turn"] == "opponent"


def test_malformed_payloads(client):
    client.post("/api/new", json={})
    assert client.post("/api/move", json={}).status_code == 400
    assert client.post("/api/move", json={"cell": "x"}).status_code == 400
    assert client.post("/api/select", json={"player": "nobody", "size": 1}).status_code == 400
    assert client.post("/api/new", json={"mode": "blitz"}).status_code == 400
    assert client.post("/api/auto-suggest", json={}).status_code == 400


def test_suggestion_round_trip(client):
    board = [[] for _ in range(9)]
    board[0] = [{"owner": "self", "size": 2}]
    board[1] = [{"owner": "self", "size": 2}]
    board[3] = [{"owner": "opponent", "size": 2}]
    board[4] = [{"owner": "opponent", "size": 2}]
    client.post("/api/auto-suggest", json={"enabled": False})
    r = client.post("/api/new", json={"mode": "companion", "first": "self", "state": {"board": board}})
    assert r.status_code == 200
    assert r.get_json()["suggestion"] is None

    r = client.post("/api/suggest", json={"wait": True})
    assert r.status_code == 200
    suggestion = r.get_json()["suggestion"]
    assert suggestion["cell"] == 2
    assert suggestion["size"] == 3
    assert suggestion["immediate_win"] is True


def test_loaded_stuck_position_is_a_draw(client):
    r = client.post(
        "/api/new",
        json={"mode": "companion", "first": "opponent", "state": {"board": stuck_board()}},
    )
    data = r.get_json()
    assert data["winner"] == "draw"
    assert data["game_over"] is True
    assert client.post("/api/suggest", json={}).status_code == 400


def test_reset_returns_to_idle(client):
    client.post("/api/new", json={"mode": "companion", "first": "self"})
    r = client.post("/api/reset", json={})
    assert r.status_code == 200
    assert r.get_json()["started"] is False


def test_auto_suggest_requires_boolean(client):
    client.post("/api/auto-suggest", json={"enabled": False})
    r = client.post("/api/auto-suggest", json={"enabled": "false"})
    assert r.status_code == 400
    assert client.get("/api/state").get_json()["auto_suggest"] is False


def test_wait_flag_parsing():
    assert _wants_wait(True, None)
    assert _wants_wait(None, "1")
    assert _wants_wait(None, "true")
    assert not _wants_wait(None, "0")
    assert not _wants_wait(None, "false")
    assert not _wants_wait("yes", None)
    assert not _wants_wait(None, None)


def test_wait_zero_in_query_does_not_block():
    settings = Settings(search_depth=2, suggestion_delay_s=0.0, ai_move_delay_s=5.0)
    controller = GameController(settings=settings)
    client = create_app(controller=controller, settings=settings).test_client()
    try:
        client.post("/api/new", json={"mode": "training", "first": "self"})
        start = time.time()
        r = client.post("/api/move?wait=0", json={"cell": 4, "player": "self", "size": 3})
        assert r.status_code == 200
        assert r.get_json()["thinking"] is True
        assert time.time() - start < 4.0
    finally:
        controller.close()
