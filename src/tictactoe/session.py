"""Session bookkeeping: the active game, finished-game history and the scoreboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from .game import GameState, Player, Status, apply_move, new_game

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryEntry:
    """Outcome of one finished game."""

    timestamp: datetime
    winner: Optional[Player]  # None for a draw
    moves: Tuple[int, ...] = ()

    @property
    def result(self) -> str:
        return self.winner if self.winner is not None else "draw"

    @classmethod
    def from_game(cls, game: GameState, timestamp: datetime) -> "HistoryEntry":
        if not game.finished:
            raise ValueError("Only finished games can be recorded")
        winner = game.winner if game.status is Status.WON else None
        return cls(timestamp=timestamp, winner=winner, moves=game.moves)


@dataclass(frozen=True)
class SessionStats:
    wins_x: int = 0
    wins_o: int = 0
    draws: int = 0

    @property
    def games_played(self) -> int:
        return self.wins_x + self.wins_o + self.draws

    @classmethod
    def from_history(cls, history: List[HistoryEntry]) -> "SessionStats":
        wins_x = wins_o = draws = 0
        for entry in history:
            if entry.winner == "X":
                wins_x += 1
            elif entry.winner == "O":
                wins_o += 1
            else:
                draws += 1
        return cls(wins_x=wins_x, wins_o=wins_o, draws=draws)


@dataclass
class Session:
    """
    One continuous play period spanning any number of games.

    The scoreboard is always derived from ``history``, so the two can never
    disagree. Every operation either completes or leaves the session as it was.
    """

    game: GameState = field(default_factory=new_game)
    history: List[HistoryEntry] = field(default_factory=list)
    clock: Clock = field(default=utcnow, repr=False)

    @property
    def stats(self) -> SessionStats:
        return SessionStats.from_history(self.history)

    def submit_move(self, position: int) -> GameState:
        # apply_move raises before anything here is touched
        game = apply_move(self.game, position)
        if game.finished:
            entry = HistoryEntry.from_game(game, self.clock())
            self.history.append(entry)
            logger.info(
                "Game finished: %s after %d moves", entry.result, len(entry.moves)
            )
        self.game = game
        return game

    def start_new_game(self) -> GameState:
        self.game = new_game()
        return self.game

    def reset_stats(self) -> None:
        logger.info("Clearing %d history entries", len(self.history))
        self.history = []


def start_session(clock: Optional[Clock] = None) -> Session:
    return Session(clock=clock or utcnow)


def submit_move(session: Session, position: int) -> GameState:
    return session.submit_move(position)


def start_new_game(session: Session) -> GameState:
    return session.start_new_game()


def reset_stats(session: Session) -> None:
    session.reset_stats()
