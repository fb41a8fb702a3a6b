"""Tic-Tac-Toe move engine: win/draw detection and minimax search."""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class Cell(Enum):
    EMPTY = 0
    X = 1
    O = 2

    def opposite(self) -> "Cell":
        """Return the other player's mark."""
        if self is Cell.X:
            return Cell.O
        if self is Cell.O:
            return Cell.X
        raise ValueError("EMPTY has no opposite")


Board = Sequence[Cell]

BOARD_SIZE = 9

# All winning lines: rows, columns, diagonals (indices into the flat board)
WIN_COMBOS: Tuple[Tuple[int, int, int], ...] = (
    # Rows
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    # Columns
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    # Diagonals
    (0, 4, 8),
    (2, 4, 6),
)

# Terminal scores, always from O's point of view
SCORE_X_WINS = -10
SCORE_O_WINS = 10
SCORE_DRAW = 0


def new_board() -> list:
    """Return an empty board."""
    return [Cell.EMPTY] * BOARD_SIZE


def empty_cells(board: Board) -> list:
    """Indices of all empty cells, in board order."""
    return [i for i, cell in enumerate(board) if cell is Cell.EMPTY]


def is_full(board: Board) -> bool:
    """True if no cell is empty."""
    return all(cell is not Cell.EMPTY for cell in board)


def is_legal(board: Board, index: int) -> bool:
    """True if ``index`` is on the board and the cell is free."""
    if isinstance(index, bool) or not isinstance(index, int):
        return False
    return 0 <= index < BOARD_SIZE and board[index] is Cell.EMPTY


def check_win(board: Board, player: Cell) -> bool:
    """Check if ``player`` owns all three cells of any winning line."""
    return any(all(board[i] is player for i in combo) for combo in WIN_COMBOS)


def winning_line(board: Board, player: Optional[Cell] = None) -> Optional[Tuple[int, int, int]]:
    """Return the first completed line for ``player`` (or for anyone if None)."""
    for combo in WIN_COMBOS:
        first = board[combo[0]]
        if first is Cell.EMPTY or (player is not None and first is not player):
            continue
        if all(board[i] is first for i in combo):
            return combo
    return None


def is_draw(board: Board) -> bool:
    """A draw is a full board where nobody has three in a row."""
    return is_full(board) and not check_win(board, Cell.X) and not check_win(board, Cell.O)


# ─── Minimax ───


def _place(board: Tuple[Cell, ...], index: int, player: Cell) -> Tuple[Cell, ...]:
    """Return a copy of ``board`` with ``player`` placed at ``index``."""
    return board[:index] + (player,) + board[index + 1:]


@lru_cache(maxsize=None)
def _score(board: Tuple[Cell, ...], mover: Cell) -> int:
    """Minimax value of ``board`` with ``mover`` to play (O maximises)."""
    if check_win(board, Cell.X):
        return SCORE_X_WINS
    if check_win(board, Cell.O):
        return SCORE_O_WINS
    moves = empty_cells(board)
    if not moves:
        return SCORE_DRAW

    scores = [_score(_place(board, i, mover), mover.opposite()) for i in moves]
    return max(scores) if mover is Cell.O else min(scores)


def best_move(board: Board, player: Cell) -> Optional[int]:
    """
    Pick the optimal move for ``player`` by exhaustive minimax.

    O maximises and X minimises the score. Among equally scored moves the
    first one in board order wins, so the result is deterministic. Returns
    None if the board is already won or full.
    """
    if player is Cell.EMPTY:
        raise ValueError("best_move needs X or O to move")

    position = tuple(board)
    if check_win(position, Cell.X) or check_win(position, Cell.O):
        return None

    best_index: Optional[int] = None
    best_score = 0
    for index in empty_cells(position):
        score = _score(_place(position, index, player), player.opposite())
        if best_index is None:
            better = True
        elif player is Cell.O:
            better = score > best_score
        else:
            better = score < best_score
        if better:
            best_index, best_score = index, score

    logger.debug("best_move for %s: %s (score %s)", player.name, best_index, best_score)
    return best_index
