"""Tests for the FastAPI Tic-Tac-Toe interface."""

from __future__ import annotations

from datetime import datetime

from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.game import GameState
from tictactoe.ui import app


client = TestClient(app)


def _create() -> dict:
    response = client.post("/api/session")
    assert response.status_code == 200
    return response.json()


def _play(session_id: str, moves) -> dict:
    state = None
    for position in moves:
        response = client.post(
            f"/api/session/{session_id}/move", json={"position": position}
        )
        assert response.status_code == 200
        state = response.json()
    return state


def test_create_session_and_first_move():
    payload = _create()
    assert payload["currentPlayer"] == "X"
    assert payload["status"] == "in_progress"
    assert payload["cells"] == [""] * 9
    assert payload["history"] == []
    assert payload["stats"] == {"winsX": 0, "winsO": 0, "draws": 0, "gamesPlayed": 0}

    state = _play(payload["id"], [4])
    assert state["cells"][4] == "X"
    assert state["currentPlayer"] == "O"
    assert state["moves"] == [4]
    assert 4 not in state["availableMoves"]

    follow_up = client.get(f"/api/session/{payload['id']}")
    assert follow_up.status_code == 200
    assert follow_up.json()["cells"][4] == "X"


def test_win_is_recorded_in_history():
    session_id = _create()["id"]
    state = _play(session_id, [0, 4, 1, 5, 2])
    assert state["status"] == "won"
    assert state["winner"] == "X"
    assert state["winningLine"] == [0, 1, 2]
    assert state["availableMoves"] == []
    assert state["stats"]["winsX"] == 1
    assert len(state["history"]) == 1
    entry = state["history"][0]
    assert entry["result"] == "X"
    assert entry["moves"] == [0, 4, 1, 5, 2]
    assert datetime.fromisoformat(entry["timestamp"]).tzinfo is not None


def test_invalid_move_rejected():
    session_id = _create()["id"]
    _play(session_id, [0])

    duplicate_move = client.post(
        f"/api/session/{session_id}/move", json={"position": 0}
    )
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]

    state = client.get(f"/api/session/{session_id}").json()
    assert state["currentPlayer"] == "O"
    assert state["moves"] == [0]


def test_rejects_out_of_range_position():
    session_id = _create()["id"]
    response = client.post(f"/api/session/{session_id}/move", json={"position": 9})
    assert response.status_code == 422


def test_new_game_and_reset_stats():
    session_id = _create()["id"]
    _play(session_id, [0, 2, 1, 3, 5, 4, 6, 7, 8])

    fresh = client.post(f"/api/session/{session_id}/new-game").json()
    assert fresh["cells"] == [""] * 9
    assert fresh["currentPlayer"] == "X"
    assert fresh["stats"]["draws"] == 1

    _play(session_id, [8])
    cleared = client.post(f"/api/session/{session_id}/reset-stats").json()
    assert cleared["history"] == []
    assert cleared["stats"]["gamesPlayed"] == 0
    assert cleared["cells"][8] == "X"


def test_corrupt_state_halts_session():
    session_id = _create()["id"]
    slot = ui.SESSIONS[session_id]
    slot.session.game = GameState(cells=("X", "X") + (" ",) * 7)

    response = client.post(f"/api/session/{session_id}/move", json={"position": 4})
    assert response.status_code == 500
    assert slot.halted is True

    blocked = client.post(f"/api/session/{session_id}/new-game")
    assert blocked.status_code == 409
    assert client.post(f"/api/session/{session_id}/reset-stats").status_code == 409
    assert (
        client.post(
            f"/api/session/{session_id}/move", json={"position": 0}
        ).status_code
        == 409
    )
    assert client.get(f"/api/session/{session_id}").json()["halted"] is True


def test_delete_session():
    session_id = _create()["id"]
    assert client.delete(f"/api/session/{session_id}").status_code == 204
    assert client.get(f"/api/session/{session_id}").status_code == 404


def test_missing_session_returns_404():
    missing = client.get("/api/session/INVALID")
    assert missing.status_code == 404


def test_oldest_session_evicted_at_capacity(monkeypatch):
    monkeypatch.setattr(ui, "SESSIONS", {})
    monkeypatch.setattr(ui, "MAX_SESSIONS", 2)
    first, second, third = (_create()["id"] for _ in range(3))
    assert list(ui.SESSIONS) == [second, third]
    assert client.get(f"/api/session/{first}").status_code == 404


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "Tic-Tac-Toe" in response.text
