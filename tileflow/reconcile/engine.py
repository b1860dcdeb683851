"""
Reconciliation Engine - Infers which tile went where.

Given the board before a move, the board after it, the move direction
and the committed identity table, produce the animation ops that explain
the next board plus the identity table that describes it.

The engine is a pure function: it never mutates the table it reads.

Matching rule (travel-order sweep):
    Moves compact each line toward one edge and keep the relative order
    of tiles, except where two equal neighbours merge. So each line is
    walked in travel order with a cursor into the previous tiles:

    for each next tile nv (travel order):
        prev[i] == nv                    -> Move, i += 1
        prev[i] == prev[i+1] == nv / 2   -> Merge (survivor prev[i]), i += 2
        otherwise                        -> Spawn, i unchanged

    Previous tiles left unconsumed at the end of a line become Remove ops.

Ties between three or more equal tiles are broken by travel order alone:
the pair nearest the compaction edge merges first.

Recovery:
- An unexplained cell or a leftover tile is logged and animated as a
  spawn/remove; the transition still goes ahead.
- A double claim (or a table that does not describe the previous board)
  aborts the sweep and the whole frame is redrawn as spawns.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator
import logging

from ..board.grid import Board, Cell, Direction, occupied_cells, travel_lines, value_at
from .ops import AnimationOp, MergeOp, MoveOp, RemoveOp, SpawnOp, merged_total
from .tracker import (
    ClaimLedger,
    DoubleClaimError,
    IdentityTable,
    TileIdentity,
    mint_tile_id,
)

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    """
    Ops for one transition and the identity table they produce.

    Unpacks as (ops, table).
    """
    ops: list[AnimationOp]
    table: IdentityTable

    # Recovered inconsistencies, for logs and diagnostics
    inconsistencies: list[str] = field(default_factory=list)

    # True when the frame was rebuilt as all-spawn instead of swept
    full_redraw: bool = False

    @property
    def consistent(self) -> bool:
        return not self.inconsistencies

    @property
    def moves(self) -> list[MoveOp]:
        return [op for op in self.ops if isinstance(op, MoveOp)]

    @property
    def merges(self) -> list[MergeOp]:
        return [op for op in self.ops if isinstance(op, MergeOp)]

    @property
    def spawns(self) -> list[SpawnOp]:
        return [op for op in self.ops if isinstance(op, SpawnOp)]

    @property
    def removals(self) -> list[RemoveOp]:
        return [op for op in self.ops if isinstance(op, RemoveOp)]

    @property
    def score_gained(self) -> int:
        return merged_total(self.ops)

    def __iter__(self) -> Iterator:
        yield self.ops
        yield self.table


def reconcile(
    previous_board: Board | None,
    next_board: Board,
    direction: Direction | None,
    table: IdentityTable,
    claims: ClaimLedger | None = None,
) -> ReconciliationResult:
    """
    Explain next_board in terms of previous_board.

    Args:
        previous_board: Board before the move, or None for a new game
        next_board: Board after the move (already validated)
        direction: Move direction; may be None only for a new game
        table: Committed identities describing previous_board
        claims: Ledger to record consumed identities (fresh if omitted)

    Returns:
        ReconciliationResult with ops and the proposed next table
    """
    if previous_board is None:
        return _redraw(next_board, IdentityTable())

    if direction is None:
        raise ValueError("a direction is required when a previous board is given")

    mismatched = table.mismatches(previous_board)
    if mismatched:
        note = f"identity table does not describe previous board at {mismatched}"
        logger.warning("Redrawing frame: %s", note)
        return _redraw(next_board, table, [note])

    ledger = claims if claims is not None else ClaimLedger()
    try:
        return _sweep(previous_board, next_board, direction, table, ledger)
    except DoubleClaimError as e:
        logger.error("Reconciliation aborted, redrawing frame: %s", e)
        return _redraw(next_board, table, [str(e)])


def _sweep(
    previous_board: Board,
    next_board: Board,
    direction: Direction,
    table: IdentityTable,
    ledger: ClaimLedger,
) -> ReconciliationResult:
    ops: list[AnimationOp] = []
    entries: dict[Cell, TileIdentity] = {}
    notes: list[str] = []

    for line in travel_lines(direction):
        prev_seq = [table.lookup(cell) for cell in line if value_at(previous_board, cell)]
        next_seq = [cell for cell in line if value_at(next_board, cell)]
        i = 0

        for cell in next_seq:
            value = value_at(next_board, cell)

            if i < len(prev_seq) and prev_seq[i].value == value:
                tile = prev_seq[i]
                ledger.claim(tile)
                ops.append(MoveOp(tile.tile_id, tile.cell, cell, value))
                entries[cell] = TileIdentity(tile.tile_id, cell, value)
                i += 1

            elif (
                i + 1 < len(prev_seq)
                and prev_seq[i].value == prev_seq[i + 1].value
                and prev_seq[i].value * 2 == value
            ):
                survivor, consumed = prev_seq[i], prev_seq[i + 1]
                ledger.claim(survivor)
                ledger.claim(consumed)
                ops.append(MergeOp(
                    survivor_id=survivor.tile_id,
                    consumed_id=consumed.tile_id,
                    survivor_from=survivor.cell,
                    consumed_from=consumed.cell,
                    target=cell,
                    new_value=value,
                ))
                entries[cell] = TileIdentity(survivor.tile_id, cell, value)
                i += 2

            else:
                if i < len(prev_seq):
                    notes.append(
                        f"cell {cell} value {value} matches no previous tile "
                        f"(next in line: {prev_seq[i].value} at {prev_seq[i].cell})"
                    )
                spawn = SpawnOp(mint_tile_id(), cell, value)
                ops.append(spawn)
                entries[cell] = TileIdentity(spawn.tile_id, cell, value)

        for tile in prev_seq[i:]:
            notes.append(f"tile {tile.tile_id} ({tile.value} at {tile.cell}) left unconsumed")
            ops.append(RemoveOp(tile.tile_id, tile.cell, tile.value))

    for note in notes:
        logger.warning("Inconsistent transition (%s): %s", direction.value, note)

    return ReconciliationResult(ops=ops, table=IdentityTable(entries), inconsistencies=notes)


def _redraw(
    next_board: Board,
    retiring: IdentityTable,
    notes: list[str] | None = None,
) -> ReconciliationResult:
    """Remove every tracked tile and spawn every tile of the next board."""
    ops: list[AnimationOp] = [
        RemoveOp(identity.tile_id, identity.cell, identity.value)
        for identity in retiring
    ]
    entries = {}
    for cell in occupied_cells(next_board):
        spawn = SpawnOp(mint_tile_id(), cell, value_at(next_board, cell))
        ops.append(spawn)
        entries[cell] = TileIdentity(spawn.tile_id, cell, spawn.value)
    return ReconciliationResult(
        ops=ops,
        table=IdentityTable(entries),
        inconsistencies=list(notes or []),
        full_redraw=True,
    )
