"""FastAPI-powered web UI for playing Tic-Tac-Toe in the browser."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .errors import CorruptState, InvalidMove
from .game import EMPTY
from .session import Session, start_session

logger = logging.getLogger(__name__)


@dataclass
class SessionSlot:
    """Registry entry pairing a session with its writer lock."""

    session: Session
    halted: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, SessionSlot] = {}
SESSIONS_LOCK = threading.Lock()
MAX_SESSIONS = 1000

app = FastAPI(title="Tic-Tac-Toe", description="Two-player tic-tac-toe with a scoreboard")


class MoveRequest(BaseModel):
    """Request payload for marking a cell in the active game."""

    position: int = Field(ge=0, le=8, description="Row-major cell index")


def _create_session() -> Tuple[str, SessionSlot]:
    """Create a new session and register it for later access."""

    slot = SessionSlot(session=start_session())
    session_id = uuid.uuid4().hex
    with SESSIONS_LOCK:
        while len(SESSIONS) >= MAX_SESSIONS:
            # dicts keep insertion order, so the first key is the oldest
            evicted = next(iter(SESSIONS))
            SESSIONS.pop(evicted)
            logger.info("Evicted session %s", evicted)
        SESSIONS[session_id] = slot
    logger.info("Created session %s", session_id)
    return session_id, slot


def _get_slot(session_id: str) -> SessionSlot:
    try:
        return SESSIONS[session_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc


def _ensure_playable(session_id: str, slot: SessionSlot) -> None:
    if slot.halted:
        raise HTTPException(
            status_code=409,
            detail=f"Session {session_id} was halted after an internal error",
        )


def _serialize_session(session_id: str, slot: SessionSlot) -> Dict[str, object]:
    with slot.lock:
        session = slot.session
        game = session.game
        stats = session.stats
        history: List[Dict[str, object]] = [
            {
                "timestamp": entry.timestamp.isoformat(),
                "result": entry.result,
                "winner": entry.winner,
                "moves": list(entry.moves),
            }
            for entry in session.history
        ]
        return {
            "id": session_id,
            "cells": [c if c != EMPTY else "" for c in game.cells],
            "currentPlayer": game.current_player,
            "status": game.status.value,
            "winner": game.winner,
            "winningLine": list(game.winning_line) if game.winning_line else None,
            "moves": list(game.moves),
            "availableMoves": game.available_moves(),
            "stats": {
                "winsX": stats.wins_x,
                "winsO": stats.wins_o,
                "draws": stats.draws,
                "gamesPlayed": stats.games_played,
            },
            "history": history,
            "halted": slot.halted,
        }


def _apply_player_move(session_id: str, slot: SessionSlot, position: int) -> None:
    with slot.lock:
        _ensure_playable(session_id, slot)
        try:
            slot.session.submit_move(position)
        except InvalidMove as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except CorruptState as exc:
            slot.halted = True
            logger.exception("Session %s halted: corrupt game state", session_id)
            raise HTTPException(
                status_code=500, detail="Internal game state is corrupt"
            ) from exc


@app.post("/api/session")
def create_session() -> Dict[str, object]:
    session_id, slot = _create_session()
    return _serialize_session(session_id, slot)


@app.get("/api/session/{session_id}")
def get_session(session_id: str) -> Dict[str, object]:
    slot = _get_slot(session_id)
    return _serialize_session(session_id, slot)


@app.delete("/api/session/{session_id}", status_code=204)
def delete_session(session_id: str) -> None:
    with SESSIONS_LOCK:
        if SESSIONS.pop(session_id, None) is None:
            raise HTTPException(status_code=404, detail="Session not found")
    logger.info("Discarded session %s", session_id)


@app.post("/api/session/{session_id}/move")
def make_move(session_id: str, request: MoveRequest) -> Dict[str, object]:
    slot = _get_slot(session_id)
    _apply_player_move(session_id, slot, request.position)
    return _serialize_session(session_id, slot)


@app.post("/api/session/{session_id}/new-game")
def new_game(session_id: str) -> Dict[str, object]:
    slot = _get_slot(session_id)
    with slot.lock:
        _ensure_playable(session_id, slot)
        slot.session.start_new_game()
    return _serialize_session(session_id, slot)


@app.post("/api/session/{session_id}/reset-stats")
def reset_stats(session_id: str) -> Dict[str, object]:
    slot = _get_slot(session_id)
    with slot.lock:
        _ensure_playable(session_id, slot)
        slot.session.reset_stats()
    return _serialize_session(session_id, slot)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(560px, 100%);
      }
      h1 {
        margin: 0 0 1rem;
        text-align: center;
        letter-spacing: 0.06em;
      }
      .status {
        text-align: center;
        font-weight: 600;
        margin-bottom: 1rem;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.5rem;
        width: min(320px, 100%);
        margin: 0 auto 1.5rem;
      }
      .cell {
        aspect-ratio: 1;
        border: none;
        border-radius: 12px;
        background: #eef1ff;
        font-size: 2.4rem;
        font-weight: 700;
        cursor: pointer;
        color: #13203a;
      }
      .cell:disabled {
        cursor: default;
      }
      .cell.x {
        color: #2f5bea;
      }
      .cell.o {
        color: #e2475b;
      }
      .cell.winning {
        background: #ffe28a;
      }
      .toolbar {
        display: flex;
        gap: 0.75rem;
        justify-content: center;
        margin-bottom: 1.5rem;
      }
      .toolbar button {
        border: none;
        border-radius: 999px;
        padding: 0.6rem 1.2rem;
        font-weight: 600;
        background: #13203a;
        color: #fff;
        cursor: pointer;
      }
      .scoreboard {
        display: flex;
        justify-content: space-around;
        margin-bottom: 1.5rem;
      }
      .scoreboard div {
        text-align: center;
      }
      .scoreboard strong {
        display: block;
        font-size: 1.6rem;
      }
      .history {
        list-style: none;
        padding: 0;
        margin: 0;
        max-height: 240px;
        overflow-y: auto;
      }
      .history li {
        display: flex;
        justify-content: space-between;
        padding: 0.4rem 0;
        border-bottom: 1px solid #e4e8f7;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic-Tac-Toe</h1>
      <div class=\"status\" id=\"status\">Loading...</div>
      <div class=\"board\" id=\"board\"></div>
      <div class=\"toolbar\">
        <button id=\"new-game\" type=\"button\">New Game</button>
        <button id=\"reset-stats\" type=\"button\">Reset Stats</button>
      </div>
      <section class=\"scoreboard\">
        <div>X wins<strong id=\"wins-x\">0</strong></div>
        <div>O wins<strong id=\"wins-o\">0</strong></div>
        <div>Draws<strong id=\"draws\">0</strong></div>
      </section>
      <h2>History</h2>
      <ul class=\"history\" id=\"history\"></ul>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const historyEl = document.getElementById('history');
      const winsXEl = document.getElementById('wins-x');
      const winsOEl = document.getElementById('wins-o');
      const drawsEl = document.getElementById('draws');
      let sessionId = null;
      let state = null;
      let busy = false;

      async function call(path, options = {}) {
        const response = await fetch(path, {
          headers: { 'Content-Type': 'application/json' },
          ...options,
        });
        if (!response.ok) {
          return null;
        }
        return response.json();
      }

      async function startSession() {
        const data = await call('/api/session', { method: 'POST' });
        if (data) {
          sessionId = data.id;
          setState(data);
        }
      }

      async function sendMove(position) {
        if (busy || !state || state.status !== 'in_progress') {
          return;
        }
        if (!state.availableMoves.includes(position)) {
          return;
        }
        busy = true;
        try {
          const data = await call(`/api/session/${sessionId}/move`, {
            method: 'POST',
            body: JSON.stringify({ position }),
          });
          if (data) {
            setState(data);
          }
        } finally {
          busy = false;
        }
      }

      async function sendAction(action) {
        const data = await call(`/api/session/${sessionId}/${action}`, { method: 'POST' });
        if (data) {
          setState(data);
        }
      }

      function setState(data) {
        state = data;
        renderBoard();
        renderStatus();
        renderStats();
        renderHistory();
      }

      function renderBoard() {
        boardEl.innerHTML = '';
        const winning = new Set(state.winningLine || []);
        state.cells.forEach((mark, index) => {
          const cell = document.createElement('button');
          cell.type = 'button';
          cell.className = 'cell';
          if (mark) {
            cell.classList.add(mark.toLowerCase());
          }
          if (winning.has(index)) {
            cell.classList.add('winning');
          }
          cell.textContent = mark;
          cell.disabled = state.halted || !state.availableMoves.includes(index);
          cell.addEventListener('click', () => sendMove(index));
          boardEl.appendChild(cell);
        });
      }

      function renderStatus() {
        if (state.halted) {
          statusEl.textContent = 'This session hit an internal error. Reload to start over.';
        } else if (state.status === 'won') {
          statusEl.textContent = `${state.winner} wins!`;
        } else if (state.status === 'draw') {
          statusEl.textContent = "It's a draw.";
        } else {
          statusEl.textContent = `${state.currentPlayer} to move`;
        }
      }

      function renderStats() {
        winsXEl.textContent = state.stats.winsX;
        winsOEl.textContent = state.stats.winsO;
        drawsEl.textContent = state.stats.draws;
      }

      function renderHistory() {
        historyEl.innerHTML = '';
        [...state.history].reverse().forEach((entry) => {
          const item = document.createElement('li');
          const label = entry.result === 'draw' ? 'Draw' : `${entry.winner} won`;
          const when = new Date(entry.timestamp).toLocaleString();
          item.innerHTML = `<span>${label}</span><span>${when}</span>`;
          historyEl.appendChild(item);
        });
      }

      document.getElementById('new-game').addEventListener('click', () => sendAction('new-game'));
      document.getElementById('reset-stats').addEventListener('click', () => sendAction('reset-stats'));

      startSession();
    </script>
  </body>
</html>
"""
