"""Tic-Tac-Toe package exposing the game engine, session tracking, and the web application."""

from .errors import CorruptState, InvalidMove, TicTacToeError
from .game import GameState, Status, apply_move, new_game
from .session import HistoryEntry, Session, SessionStats, start_session
from .ui import app

__all__ = [
    "CorruptState",
    "GameState",
    "HistoryEntry",
    "InvalidMove",
    "Session",
    "SessionStats",
    "Status",
    "TicTacToeError",
    "app",
    "apply_move",
    "new_game",
    "start_session",
]
