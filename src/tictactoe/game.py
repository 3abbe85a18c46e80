"""Core rules for a single 3x3 Tic-Tac-Toe game."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .errors import CorruptState, InvalidMove

Player = str  # "X" or "O"
Line = Tuple[int, int, int]

EMPTY = " "
MARKS: Tuple[Player, Player] = ("X", "O")
BOARD_SIZE = 9

WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Status(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    DRAW = "draw"


def other(player: Player) -> Player:
    return "O" if player == "X" else "X"


# ---------- Board evaluation ----------


def completed_lines(cells: Sequence[str]) -> List[Line]:
    """Every winning triple fully held by one mark, in canonical order."""
    return [
        line
        for line in WINNING_LINES
        if cells[line[0]] != EMPTY
        and cells[line[0]] == cells[line[1]] == cells[line[2]]
    ]


def evaluate(cells: Sequence[str]) -> Tuple[Status, Optional[Player], Optional[Line]]:
    """
    Classify a board as (status, winner, winning_line).

    Two lines of the same mark can be closed by a single move (the shared
    cell played last, e.g. X on 1, 2, 3, 6 then 0). That is a legal win, not
    a corrupt board: the first line in canonical order (rows, columns,
    diagonals) is reported. Lines held by both marks cannot come out of
    legal play and raise CorruptState.
    """
    _check_cells(cells)
    lines = completed_lines(cells)
    if lines:
        owners = {cells[line[0]] for line in lines}
        if len(owners) > 1:
            raise CorruptState("Both players hold a completed line")
        line = lines[0]
        return Status.WON, cells[line[0]], line
    if all(c != EMPTY for c in cells):
        return Status.DRAW, None, None
    return Status.IN_PROGRESS, None, None


def _check_cells(cells: Sequence[str]) -> None:
    if len(cells) != BOARD_SIZE:
        raise CorruptState(f"Board must have {BOARD_SIZE} cells, got {len(cells)}")
    unknown = {c for c in cells if c != EMPTY and c not in MARKS}
    if unknown:
        raise CorruptState(f"Unknown cell values: {sorted(unknown)}")
    x_count = sum(1 for c in cells if c == "X")
    o_count = sum(1 for c in cells if c == "O")
    # X moves first, so X is level with O or one ahead
    if x_count - o_count not in (0, 1):
        raise CorruptState(f"Mark counts out of balance: X={x_count}, O={o_count}")


# ---------- Game state ----------


@dataclass(frozen=True)
class GameState:
    """One game. Instances are immutable; every move yields a new state."""

    cells: Tuple[str, ...] = field(default_factory=lambda: (EMPTY,) * BOARD_SIZE)
    current_player: Player = "X"
    status: Status = Status.IN_PROGRESS
    winner: Optional[Player] = None
    winning_line: Optional[Line] = None
    moves: Tuple[int, ...] = ()

    @property
    def finished(self) -> bool:
        return self.status is not Status.IN_PROGRESS

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return [i for i, c in enumerate(self.cells) if c == EMPTY]

    def play_move(self, position: int) -> "GameState":
        """Return the state after the current player marks ``position``."""
        return apply_move(self, position)

    def validate(self) -> None:
        """Raise CorruptState if the fields contradict each other."""
        if not isinstance(self.status, Status):
            raise CorruptState(f"Unknown status {self.status!r}")
        status, winner, line = evaluate(self.cells)
        if (status, winner, line) != (self.status, self.winner, self.winning_line):
            raise CorruptState(
                f"Recorded status {self.status.value!r} does not match the board"
            )
        x_count = self.cells.count("X")
        o_count = self.cells.count("O")
        if status is Status.IN_PROGRESS:
            expected = "X" if x_count == o_count else "O"
            if self.current_player != expected:
                raise CorruptState(
                    f"Turn is {self.current_player!r} but the board says {expected!r}"
                )
        elif status is Status.WON:
            # the winner made the last move
            lead = 1 if winner == "X" else 0
            if x_count - o_count != lead:
                raise CorruptState(
                    f"{winner} won but the mark counts are X={x_count}, O={o_count}"
                )
        if self.moves and len(self.moves) != x_count + o_count:
            raise CorruptState("Move log does not match the number of marks")


def new_game() -> GameState:
    return GameState()


def apply_move(state: GameState, position: int) -> GameState:
    """Apply a legal move and return the resulting state.

    Raises InvalidMove for an out-of-range or occupied cell, or when the game
    is already decided. The input state is never modified.
    """
    state.validate()

    if state.finished:
        raise InvalidMove("Game already finished", position)
    # bool is an int subclass but never a board position
    if isinstance(position, bool) or not isinstance(position, int):
        raise InvalidMove(f"Position must be an integer, got {position!r}", position)
    if not 0 <= position < BOARD_SIZE:
        raise InvalidMove(f"Position {position} is off the board", position)
    if state.cells[position] != EMPTY:
        raise InvalidMove(f"Cell {position} is already occupied", position)

    player = state.current_player
    cells = list(state.cells)
    cells[position] = player
    status, winner, line = evaluate(cells)

    return replace(
        state,
        cells=tuple(cells),
        current_player=player if status is not Status.IN_PROGRESS else other(player),
        status=status,
        winner=winner,
        winning_line=line,
        moves=state.moves + (position,),
    )


def available_moves(state: GameState) -> List[int]:
    return state.available_moves()
