"""
Board Module - Grid primitives and validated snapshots.

Everything that reaches the reconciliation engine passes through
GameSnapshot validation first.
"""

from .grid import (
    GRID_SIZE,
    Board,
    Cell,
    Direction,
    empty_board,
    format_board,
    freeze_board,
    is_tile_value,
    occupied_cells,
    travel_lines,
    value_at,
)
from .snapshot import GameSnapshot, SnapshotError, parse_snapshot

__all__ = [
    "GRID_SIZE",
    "Board",
    "Cell",
    "Direction",
    "empty_board",
    "format_board",
    "freeze_board",
    "is_tile_value",
    "occupied_cells",
    "travel_lines",
    "value_at",
    "GameSnapshot",
    "SnapshotError",
    "parse_snapshot",
]
