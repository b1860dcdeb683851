"""
Grid primitives - cells, directions and travel-order line walks.

A board is a 4x4 matrix of non-negative integers. 0 is an empty cell;
any other value is a power of two >= 2.

A move compacts every line toward one edge:
- left/right work on rows, up/down on columns
- travel order walks a line starting at the edge tiles slide toward
"""

from __future__ import annotations
from enum import Enum
from typing import Sequence

GRID_SIZE = 4

Cell = tuple[int, int]
Board = tuple[tuple[int, ...], ...]


class Direction(Enum):
    """Move directions accepted by the rules service."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        """Accept a Direction or its wire name (case-insensitive)."""
        if isinstance(value, Direction):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown direction: {value!r}") from None

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LEFT, Direction.RIGHT)


def is_tile_value(value: int) -> bool:
    """True for a legal nonzero tile value (power of two >= 2)."""
    return value >= 2 and (value & (value - 1)) == 0


def freeze_board(rows: Sequence[Sequence[int]]) -> Board:
    """Copy any row-major matrix into an immutable Board."""
    return tuple(tuple(int(v) for v in row) for row in rows)


def empty_board(size: int = GRID_SIZE) -> Board:
    return tuple((0,) * size for _ in range(size))


def value_at(board: Board, cell: Cell) -> int:
    row, col = cell
    return board[row][col]


def occupied_cells(board: Board) -> list[Cell]:
    """Nonzero cells in row-major order."""
    return [
        (r, c)
        for r, row in enumerate(board)
        for c, value in enumerate(row)
        if value
    ]


def travel_lines(direction: Direction, size: int = GRID_SIZE) -> list[list[Cell]]:
    """
    Every line of the grid, each walked in travel order.

    LEFT  -> rows, col 0 first       RIGHT -> rows, last col first
    UP    -> columns, row 0 first    DOWN  -> columns, last row first
    """
    lines = []
    for index in range(size):
        if direction.is_horizontal:
            line = [(index, c) for c in range(size)]
        else:
            line = [(r, index) for r in range(size)]
        if direction in (Direction.RIGHT, Direction.DOWN):
            line.reverse()
        lines.append(line)
    return lines


def format_board(board: Board) -> str:
    """Fixed-width text rendering, one row per line."""
    width = max(len(str(v)) for row in board for v in row)
    return "\n".join(
        " ".join(str(v).rjust(width) if v else ".".rjust(width) for v in row)
        for row in board
    )
