"""
Game Snapshot - strictly validated reading from the rules service.

The service returns JSON shaped like:
    {"board": [[0, 2, 0, 0], ...], "score": 12, "won": false, "gameOver": false}

Snapshots are validated before they reach the reconciliation engine.
A snapshot is rejected when:
- a required field is missing or has the wrong type
- the board is not 4x4
- a nonzero cell is not a power of two >= 2
- the score is negative
"""

from __future__ import annotations
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .grid import GRID_SIZE, Board, freeze_board, is_tile_value, occupied_cells


class SnapshotError(ValueError):
    """A snapshot that violates the board invariants."""

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.details = details or []


class GameSnapshot(BaseModel):
    """Board, score and status flags at one instant."""

    model_config = ConfigDict(strict=True, frozen=True, populate_by_name=True)

    board: list[list[int]]
    score: int = Field(ge=0)
    won: bool
    game_over: bool = Field(alias="gameOver")

    @field_validator("board")
    @classmethod
    def _check_board(cls, rows: list[list[int]]) -> list[list[int]]:
        if len(rows) != GRID_SIZE:
            raise ValueError(f"board must have {GRID_SIZE} rows, got {len(rows)}")
        for r, row in enumerate(rows):
            if len(row) != GRID_SIZE:
                raise ValueError(
                    f"row {r} must have {GRID_SIZE} cells, got {len(row)}"
                )
            for c, value in enumerate(row):
                if value != 0 and not is_tile_value(value):
                    raise ValueError(
                        f"cell ({r},{c}) holds {value}, not 0 or a power of two >= 2"
                    )
        return rows

    @property
    def grid(self) -> Board:
        """The board as an immutable matrix."""
        return freeze_board(self.board)

    @property
    def tile_count(self) -> int:
        return len(occupied_cells(self.grid))

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the service's field names."""
        return self.model_dump(by_alias=True)


def parse_snapshot(payload: Any) -> GameSnapshot:
    """
    Validate a raw payload from the rules service.

    Raises:
        SnapshotError: payload is not a well-formed snapshot
    """
    if not isinstance(payload, dict):
        raise SnapshotError(
            f"snapshot must be a JSON object, got {type(payload).__name__}"
        )
    try:
        return GameSnapshot.model_validate(payload)
    except ValidationError as e:
        raise SnapshotError(
            f"invalid snapshot: {e.error_count()} error(s)",
            details=[
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ],
        ) from e
