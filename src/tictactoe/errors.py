"""Exceptions raised by the game engine and session tracker."""

from __future__ import annotations

from typing import Optional


class TicTacToeError(Exception):
    """Base class for every error raised by this package."""


class InvalidMove(TicTacToeError, ValueError):
    """A move that the rules do not allow; the game is left untouched."""

    def __init__(self, message: str, position: Optional[object] = None):
        super().__init__(message)
        self.position = position


class CorruptState(TicTacToeError, RuntimeError):
    """A game state that could not have been reached through legal play."""
