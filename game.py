"""Tic-Tac-Toe game logic."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

from engine import Cell, best_move, is_draw, is_legal, new_board, winning_line

logger = logging.getLogger(__name__)


class Mode(Enum):
    PVP = "pvp"
    PVAI = "ai"


class Phase(Enum):
    AWAITING_X = "awaiting_x"
    AWAITING_O = "awaiting_o"
    WON = "won"
    DRAW = "draw"


# Display symbols
SYMBOLS = {
    Cell.EMPTY: "·",
    Cell.X: "❌",
    Cell.O: "⭕",
}


class IllegalMove(ValueError):
    """A move that cannot be applied to the current state."""

    def __init__(self, message: str, index: object = None) -> None:
        super().__init__(message)
        self.index = index


class GameOver(IllegalMove):
    """A move attempted after the game was won or drawn."""


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of a GameState, handed to listeners."""

    board: Tuple[Cell, ...]
    current_turn: Cell
    active: bool
    mode: Mode
    phase: Phase
    winner: Optional[Cell] = None
    winning_line: Optional[Tuple[int, int, int]] = None


Listener = Callable[[Snapshot], None]


@dataclass
class GameState:
    """A single tic-tac-toe game instance."""

    mode: Mode = Mode.PVP
    board: list = field(default_factory=new_board)
    current_turn: Cell = Cell.X  # X always goes first
    active: bool = True
    winner: Optional[Cell] = None  # None = draw or ongoing
    winning_line: Optional[Tuple[int, int, int]] = None
    moves: List[int] = field(default_factory=list)
    listeners: List[Listener] = field(default_factory=list, repr=False, compare=False)

    @property
    def phase(self) -> Phase:
        if self.winner is not None:
            return Phase.WON
        if not self.active:
            return Phase.DRAW
        return Phase.AWAITING_X if self.current_turn is Cell.X else Phase.AWAITING_O

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` with a snapshot after every change."""
        self.listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Stop notifying ``listener``."""
        self.listeners.remove(listener)

    def snapshot(self) -> Snapshot:
        """Return an immutable copy of the current state."""
        return Snapshot(
            board=tuple(self.board),
            current_turn=self.current_turn,
            active=self.active,
            mode=self.mode,
            phase=self.phase,
            winner=self.winner,
            winning_line=self.winning_line,
        )

    def reset(self, mode: Optional[Mode] = None) -> None:
        """Start a fresh game, optionally switching mode."""
        if mode is not None:
            self.mode = mode
        self.board = new_board()
        self.current_turn = Cell.X
        self.active = True
        self.winner = None
        self.winning_line = None
        self.moves = []
        logger.debug("Game reset (mode=%s)", self.mode.value)
        self._notify()

    def apply_move(self, index: int) -> None:
        """
        Place the current player's mark at ``index``.

        Raises GameOver once the game is won or drawn, and IllegalMove for an
        out-of-range index or an occupied cell. In AI mode the engine's reply
        for O is applied before returning.
        """
        if not self.active:
            raise GameOver("Game is already over", index)
        if not is_legal(self.board, index):
            raise IllegalMove(f"Illegal move at {index!r}", index)

        mark = self.current_turn
        self.board[index] = mark
        self.moves.append(index)

        # Check for win or draw
        line = winning_line(self.board, mark)
        if line is not None:
            self.active = False
            self.winner = mark
            self.winning_line = line
            logger.info("%s wins on %s", mark.name, line)
        elif is_draw(self.board):
            self.active = False
            logger.info("Game drawn after %d moves", len(self.moves))
        else:
            self.current_turn = mark.opposite()

        self._notify()

        if self.active and self.mode is Mode.PVAI and self.current_turn is Cell.O:
            self.play_ai_move()

    def play_ai_move(self) -> int:
        """Let the engine choose and apply a move for the player to move."""
        if not self.active:
            raise GameOver("Game is already over")
        index = best_move(self.board, self.current_turn)
        logger.debug("AI plays %s at %s", self.current_turn.name, index)
        self.apply_move(index)
        return index

    def _notify(self) -> None:
        if not self.listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self.listeners):
            listener(snapshot)
