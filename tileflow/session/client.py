"""
Game Client - One game session as seen from the browser side.

The loop:
1. User presses a direction
2. Client drops it if a transition is already in flight
3. Rules service applies the move and returns a snapshot
4. Engine reconciles previous board -> next board
5. Scheduler animates both phases and commits identities
6. Score and status are shown

A new game always wins: it abandons any running animation and discards
replies that belong to the previous game.

Failed round trips show a transient notification and change nothing.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..animation.scheduler import AnimationScheduler
from ..animation.surface import NullSurface, RenderSurface
from ..board.grid import Board, Direction
from ..board.snapshot import GameSnapshot
from ..config import ClientConfig
from ..reconcile.engine import reconcile
from ..reconcile.ops import AnimationOp
from ..reconcile.tracker import TileIdentityTracker
from ..transport.source import SnapshotSource, TransportError

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """
    Outcome of one request (new game, move, resume).

    A dropped move has success=False, dropped=True and nothing else set.
    """
    success: bool
    dropped: bool = False

    # Snapshot the transition produced (None on failure)
    snapshot: GameSnapshot | None = None

    # Ops that were animated
    ops: list[AnimationOp] = field(default_factory=list)

    # True once the identity table was committed
    committed: bool = False
    full_redraw: bool = False

    # The rules service could not be reached or answered badly
    transport_failed: bool = False

    inconsistencies: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class GameClient:
    """
    Drives one game session against a snapshot source.

    Usage:
        client = GameClient(HttpSnapshotSource(url), surface)
        await client.new_game()

        result = await client.move("left")
        if result.dropped:
            pass  # still animating the previous move
    """

    def __init__(
        self,
        source: SnapshotSource,
        surface: RenderSurface | None = None,
        config: ClientConfig | None = None,
    ):
        self.config = config or ClientConfig()
        self.source = source
        self.surface = surface or NullSurface()
        self.tracker = TileIdentityTracker()
        self.scheduler = AnimationScheduler(
            self.surface,
            self.tracker,
            slide_ms=self.config.slide_ms,
            settle_ms=self.config.settle_ms,
        )

        # Last snapshot whose transition committed
        self.snapshot: GameSnapshot | None = None

        self._requests_in_flight = 0
        self._game_epoch = 0

    @property
    def board(self) -> Board | None:
        return self.snapshot.grid if self.snapshot else None

    def is_busy(self) -> bool:
        """True while a move round trip or an animation cycle is in flight."""
        return self._requests_in_flight > 0 or self.scheduler.is_busy()

    async def new_game(self) -> TransitionResult:
        """Start a new game, regardless of anything in flight."""
        return await self._start("start a new game", self.source.new_game)

    async def resume(self) -> TransitionResult:
        """Draw whatever game the service currently holds, from scratch."""
        return await self._start("load the game", self.source.state)

    async def move(self, direction: str | Direction) -> TransitionResult:
        """
        Request one move.

        Dropped without any effect while a transition is in flight.
        """
        direction = Direction.parse(direction)

        if self.is_busy():
            logger.debug("Dropped move %s: busy", direction.value)
            return TransitionResult(success=False, dropped=True)

        if self.snapshot is None:
            return TransitionResult(success=False, errors=["No game in progress"])

        previous = self.snapshot
        epoch = self._game_epoch

        self._requests_in_flight += 1
        try:
            snapshot = await self.source.move(direction)
        except TransportError as e:
            return self._transport_failed("make that move", e)
        finally:
            self._requests_in_flight -= 1

        if epoch != self._game_epoch:
            logger.debug("Discarded %s reply from an abandoned game", direction.value)
            return TransitionResult(success=False, errors=["Game was restarted"])

        return await self.on_snapshot(previous.grid, snapshot, direction)

    async def on_snapshot(
        self,
        previous_board: Board | None,
        snapshot: GameSnapshot,
        direction: Direction | None,
    ) -> TransitionResult:
        """
        Reconcile and animate one accepted transition.

        previous_board is None for the first snapshot of a game, which is
        drawn as all spawns.
        """
        claims = self.tracker.open_claims()
        result = reconcile(previous_board, snapshot.grid, direction, self.tracker.table, claims)

        if previous_board is not None and self.snapshot is not None and not result.full_redraw:
            self._check_score(self.snapshot, snapshot, result.score_gained)

        committed = await self.scheduler.schedule(result.ops, result.table)
        if committed:
            self.snapshot = snapshot
            self.surface.show_status(snapshot)

        return TransitionResult(
            success=committed,
            snapshot=snapshot,
            ops=result.ops,
            committed=committed,
            full_redraw=result.full_redraw,
            inconsistencies=result.inconsistencies,
            errors=[] if committed else ["Transition abandoned by a new game"],
        )

    async def _start(self, action: str, fetch) -> TransitionResult:
        self._requests_in_flight += 1
        try:
            snapshot = await fetch()
        except TransportError as e:
            return self._transport_failed(action, e)
        finally:
            self._requests_in_flight -= 1

        self._game_epoch += 1
        self.scheduler.abandon()
        self.snapshot = None
        logger.info("Game started with %d tiles", snapshot.tile_count)
        return await self.on_snapshot(None, snapshot, None)

    def _check_score(self, before: GameSnapshot, after: GameSnapshot, merged: int):
        delta = after.score - before.score
        if delta != merged:
            logger.warning(
                "Score moved by %d but merges account for %d", delta, merged
            )

    def _transport_failed(self, action: str, error: TransportError) -> TransitionResult:
        logger.warning("Failed to %s: %s", action, error)
        message = f"Failed to {action}. Please try again."
        self.surface.notify(message, self.config.notify_ms)
        return TransitionResult(success=False, transport_failed=True, errors=[message])
