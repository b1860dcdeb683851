"""
Tile Identity Tracker - Gives tiles continuity across snapshots.

The rules service never names tiles; the client does. An identity is
minted the first time a tile is seen with no plausible predecessor and
is retired when the tile is consumed by a merge or leaves the board.

Ownership:
- IdentityTable is immutable; the engine reads one and proposes another
- TileIdentityTracker holds the committed table and is written only by
  the animation scheduler (commit) or a new game (reset)
- ClaimLedger records which identities one transition has consumed
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping
import itertools

from ..board.grid import Board, Cell, occupied_cells, value_at

_tile_sequence = itertools.count(1)


def mint_tile_id() -> str:
    """Fresh process-unique tile identity."""
    return f"tile-{next(_tile_sequence)}"


class DoubleClaimError(RuntimeError):
    """The same identity was consumed twice within one transition."""

    def __init__(self, tile_id: str):
        super().__init__(f"identity {tile_id} claimed twice in one transition")
        self.tile_id = tile_id


@dataclass(frozen=True)
class TileIdentity:
    """A client-assigned tile token with its last known cell and value."""
    tile_id: str
    cell: Cell
    value: int


class IdentityTable:
    """
    Immutable map of occupied cell -> TileIdentity.

    Its size always equals the number of nonzero cells of the board it
    describes.
    """

    def __init__(self, entries: Mapping[Cell, TileIdentity] | None = None):
        self._entries = MappingProxyType(dict(entries or {}))

    @classmethod
    def from_board(cls, board: Board) -> IdentityTable:
        """Mint a fresh identity for every occupied cell."""
        return cls({
            cell: TileIdentity(mint_tile_id(), cell, value_at(board, cell))
            for cell in occupied_cells(board)
        })

    def lookup(self, cell: Cell) -> TileIdentity | None:
        return self._entries.get(cell)

    @property
    def cells(self) -> list[Cell]:
        return sorted(self._entries)

    @property
    def tile_ids(self) -> set[str]:
        return {identity.tile_id for identity in self._entries.values()}

    def mismatches(self, board: Board) -> list[Cell]:
        """Cells where this table and the board disagree on occupancy or value."""
        cells = set(self._entries) | set(occupied_cells(board))
        bad = []
        for cell in sorted(cells):
            identity = self._entries.get(cell)
            value = value_at(board, cell)
            if identity is None or identity.value != value or identity.cell != cell:
                bad.append(cell)
        return bad

    def describes(self, board: Board) -> bool:
        return not self.mismatches(board)

    def to_dict(self) -> dict[str, dict]:
        return {
            identity.tile_id: {"cell": list(cell), "value": identity.value}
            for cell, identity in sorted(self._entries.items())
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TileIdentity]:
        return iter(self._entries[cell] for cell in sorted(self._entries))

    def __contains__(self, cell: object) -> bool:
        return cell in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IdentityTable):
            return NotImplemented
        return dict(self._entries) == dict(other._entries)

    def __repr__(self) -> str:
        return f"IdentityTable({len(self)} tiles)"


class ClaimLedger:
    """Identities consumed during one transition."""

    def __init__(self):
        self._claimed: set[str] = set()

    def claim(self, identity: TileIdentity):
        """
        Mark an identity as consumed.

        Raises:
            DoubleClaimError: the identity was already claimed
        """
        if identity.tile_id in self._claimed:
            raise DoubleClaimError(identity.tile_id)
        self._claimed.add(identity.tile_id)

    def is_claimed(self, identity: TileIdentity) -> bool:
        return identity.tile_id in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)


class TileIdentityTracker:
    """
    Holder of the committed identity table for one game session.

    Between commits the table is immutable; commit swaps it in one
    assignment so no partial update is observable.
    """

    def __init__(self):
        self._table = IdentityTable()
        self._claims = ClaimLedger()
        self.generation = 0

    @property
    def table(self) -> IdentityTable:
        return self._table

    def lookup(self, cell: Cell) -> TileIdentity | None:
        return self._table.lookup(cell)

    def open_claims(self) -> ClaimLedger:
        """Start a fresh claim ledger for the next transition."""
        self._claims = ClaimLedger()
        return self._claims

    def claim(self, identity: TileIdentity):
        self._claims.claim(identity)

    def commit(self, table: IdentityTable):
        """Replace the tracked table with the post-transition one."""
        self._table = table
        self._claims = ClaimLedger()
        self.generation += 1

    def reset(self):
        """Forget every identity (new game)."""
        self.commit(IdentityTable())
