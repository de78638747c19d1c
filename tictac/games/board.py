"""Tic-tac-toe board used to pick the opening move."""
from enum import IntEnum
from typing import Tuple

from ..core.errors import InvalidMove, NoMoveSelected

BOARD_SIZE = 9

class Move(IntEnum):
    """Cell marks, encoded the way the game contract stores them."""
    EMPTY = 0
    X = 1
    O = 2

    @property
    def symbol(self) -> str:
        return {Move.EMPTY: ".", Move.X: "X", Move.O: "O"}[self]

Board = Tuple[Move, ...]

EMPTY_BOARD: Board = (Move.EMPTY,) * BOARD_SIZE

def check_cell(index: int) -> int:
    """Validate a cell index (0-8, row by row)."""
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < BOARD_SIZE:
        raise InvalidMove(f"Cell must be between 0 and {BOARD_SIZE - 1}, got {index!r}")
    return index

def place_opening_move(index: int, mark: Move = Move.X) -> Board:
    """Board holding only the opening move. Selecting another cell replaces it."""
    check_cell(index)
    cells = list(EMPTY_BOARD)
    cells[index] = mark
    return tuple(cells)

def opening_move(board: Board) -> Tuple[int, Move]:
    """Return (cell index, mark) of the single move on an opening board.

    Raises:
        NoMoveSelected: If the board is empty
        InvalidMove: If the board is malformed or holds more than one move
    """
    if len(board) != BOARD_SIZE:
        raise InvalidMove(f"Board must have {BOARD_SIZE} cells, got {len(board)}")
    played = [(i, Move(cell)) for i, cell in enumerate(board) if cell != Move.EMPTY]
    if not played:
        raise NoMoveSelected()
    if len(played) > 1:
        raise InvalidMove(f"Opening board must hold exactly one move, found {len(played)}")
    return played[0]

def render_board(board: Board) -> str:
    rows = []
    for row in range(3):
        cells = board[row * 3:row * 3 + 3]
        rows.append(" ".join(Move(cell).symbol for cell in cells))
    return "\n".join(rows)
