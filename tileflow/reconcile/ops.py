"""
Animation Operations - Typed descriptions of one visual transition.

Each op explains one tile's fate between two snapshots:
- MoveOp: a tile slides without changing value
- MergeOp: two tiles slide into one cell and combine
- SpawnOp: a tile appears with no predecessor
- RemoveOp: a previous tile that has no place on the next board

The destinations of all Move/Merge/Spawn ops for one transition are
exactly the nonzero cells of the next board. RemoveOp has no destination.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Union

from ..board.grid import Cell


class OpType(Enum):
    """Kinds of animation op."""
    MOVE = "move"
    MERGE = "merge"
    SPAWN = "spawn"
    REMOVE = "remove"


@dataclass(frozen=True)
class MoveOp:
    """
    A tile slides from one cell to another.

    source == target is a legal, motionless move (the tile stayed put).
    """
    tile_id: str
    source: Cell
    target: Cell
    value: int

    @property
    def op_type(self) -> OpType:
        return OpType.MOVE

    @property
    def destination(self) -> Cell:
        return self.target

    @property
    def is_stationary(self) -> bool:
        return self.source == self.target

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.op_type.value,
            "tile_id": self.tile_id,
            "from": list(self.source),
            "to": list(self.target),
            "value": self.value,
        }


@dataclass(frozen=True)
class MergeOp:
    """
    Two equal tiles slide into one cell and combine.

    The survivor keeps its identity and takes new_value; the consumed
    tile is retired once the settle phase removes it.
    """
    survivor_id: str
    consumed_id: str
    survivor_from: Cell
    consumed_from: Cell
    target: Cell
    new_value: int

    @property
    def op_type(self) -> OpType:
        return OpType.MERGE

    @property
    def destination(self) -> Cell:
        return self.target

    @property
    def source_value(self) -> int:
        return self.new_value // 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.op_type.value,
            "survivor_id": self.survivor_id,
            "consumed_id": self.consumed_id,
            "from": [list(self.survivor_from), list(self.consumed_from)],
            "to": list(self.target),
            "value": self.new_value,
        }


@dataclass(frozen=True)
class SpawnOp:
    """A tile appears at a cell with no predecessor."""
    tile_id: str
    target: Cell
    value: int

    @property
    def op_type(self) -> OpType:
        return OpType.SPAWN

    @property
    def destination(self) -> Cell:
        return self.target

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.op_type.value,
            "tile_id": self.tile_id,
            "to": list(self.target),
            "value": self.value,
        }


@dataclass(frozen=True)
class RemoveOp:
    """A previous tile that nothing on the next board accounts for."""
    tile_id: str
    source: Cell
    value: int

    @property
    def op_type(self) -> OpType:
        return OpType.REMOVE

    @property
    def destination(self) -> None:
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.op_type.value,
            "tile_id": self.tile_id,
            "from": list(self.source),
            "value": self.value,
        }


AnimationOp = Union[MoveOp, MergeOp, SpawnOp, RemoveOp]


def destinations(ops: Iterable[AnimationOp]) -> list[Cell]:
    """Destination cells of every Move/Merge/Spawn op, in op order."""
    return [op.destination for op in ops if op.destination is not None]


def merged_total(ops: Iterable[AnimationOp]) -> int:
    """Sum of merged values; equals the score gained by the transition."""
    return sum(op.new_value for op in ops if isinstance(op, MergeOp))


def is_motionless(ops: Iterable[AnimationOp]) -> bool:
    """True when the ops change nothing visible (every op is a stationary move)."""
    return all(isinstance(op, MoveOp) and op.is_stationary for op in ops)
