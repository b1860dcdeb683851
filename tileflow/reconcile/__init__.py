"""
Reconcile Module - Tile identities and board-to-board matching.

The engine reads an IdentityTable and proposes a new one; only the
animation scheduler commits it to the TileIdentityTracker.
"""

from .ops import (
    AnimationOp,
    MergeOp,
    MoveOp,
    OpType,
    RemoveOp,
    SpawnOp,
    destinations,
    is_motionless,
    merged_total,
)
from .tracker import (
    ClaimLedger,
    DoubleClaimError,
    IdentityTable,
    TileIdentity,
    TileIdentityTracker,
    mint_tile_id,
)
from .engine import ReconciliationResult, reconcile

__all__ = [
    "AnimationOp",
    "MergeOp",
    "MoveOp",
    "OpType",
    "RemoveOp",
    "SpawnOp",
    "destinations",
    "is_motionless",
    "merged_total",
    "ClaimLedger",
    "DoubleClaimError",
    "IdentityTable",
    "TileIdentity",
    "TileIdentityTracker",
    "mint_tile_id",
    "ReconciliationResult",
    "reconcile",
]
