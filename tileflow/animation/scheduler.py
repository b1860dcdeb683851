"""
Animation Scheduler - Two-phase, single-threaded transition sequencer.

One cycle per accepted transition:
    Phase 1 (slide):  moves and both halves of merges slide to their target
    Phase 2 (settle): merges relabel, consumed tiles vanish, spawns fade in
    Commit:           the proposed identity table replaces the tracked one

Exactly one cycle is in flight at a time. Cycles run on the asyncio event
loop and suspend only on the two phase delays, so no locks are needed.

A new game abandons the running cycle by bumping the epoch. The stale
cycle still finishes sleeping, but it neither renders nor commits.
"""

from __future__ import annotations
from typing import Sequence
import asyncio
import logging

from ..reconcile.ops import AnimationOp, MergeOp, MoveOp, is_motionless
from ..reconcile.tracker import IdentityTable, TileIdentityTracker
from .surface import RenderSurface

logger = logging.getLogger(__name__)


class SchedulerBusyError(RuntimeError):
    """A cycle was scheduled while another one is still running."""


class AnimationScheduler:
    """
    Realizes animation ops as timed phases and commits identity tables.

    Usage:
        scheduler = AnimationScheduler(surface, tracker)

        if not scheduler.is_busy():
            committed = await scheduler.schedule(result.ops, result.table)
    """

    def __init__(
        self,
        surface: RenderSurface,
        tracker: TileIdentityTracker,
        slide_ms: int = 120,
        settle_ms: int = 160,
    ):
        self.surface = surface
        self.tracker = tracker
        self.slide_ms = slide_ms
        self.settle_ms = settle_ms
        self._epoch = 0
        self._busy = False

    @property
    def epoch(self) -> int:
        return self._epoch

    def is_busy(self) -> bool:
        return self._busy

    async def schedule(self, ops: Sequence[AnimationOp], table: IdentityTable) -> bool:
        """
        Run both phases for ops, then commit table.

        Returns:
            True if the table was committed, False if the cycle was
            abandoned by a new game while it ran.

        Raises:
            SchedulerBusyError: another cycle is in flight
        """
        if self._busy:
            raise SchedulerBusyError("an animation cycle is already running")

        self._busy = True
        epoch = self._epoch
        try:
            if is_motionless(ops):
                logger.debug("Motionless transition, committing %d tiles", len(table))
                self.tracker.commit(table)
                return True

            sliding = [
                op for op in ops
                if isinstance(op, MergeOp) or (isinstance(op, MoveOp) and not op.is_stationary)
            ]
            settling = [op for op in ops if not isinstance(op, MoveOp)]

            logger.debug("Phase 1: sliding %d ops", len(sliding))
            self.surface.slide(sliding)
            await asyncio.sleep(self.slide_ms / 1000)
            if epoch != self._epoch:
                logger.debug("Cycle %d abandoned after slide", epoch)
                return False

            logger.debug("Phase 2: settling %d ops", len(settling))
            self.surface.settle(settling)
            await asyncio.sleep(self.settle_ms / 1000)
            if epoch != self._epoch:
                logger.debug("Cycle %d abandoned after settle", epoch)
                return False

            self.tracker.commit(table)
            return True
        finally:
            if epoch == self._epoch:
                self._busy = False

    def abandon(self):
        """
        Drop the in-flight cycle and every tracked identity (new game).

        Always succeeds, busy or not.
        """
        if self._busy:
            logger.debug("Abandoning cycle %d", self._epoch)
        self._epoch += 1
        self._busy = False
        self.tracker.reset()
        self.surface.clear()
