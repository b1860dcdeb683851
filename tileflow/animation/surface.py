"""
Render Surface - Where animation phases land.

The scheduler never touches pixels; it calls a RenderSurface once per
phase. Layout (cell size, gaps, window resizes) is the surface's concern:
ops only ever reference grid cells.

Implementations:
- RecordingSurface: turns every call into an event dict, keeps them in
  order and forwards them to subscribers (tests, WebSocket bridge)
- NullSurface: discards everything (headless use)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Sequence

from ..board.snapshot import GameSnapshot
from ..reconcile.ops import AnimationOp, MergeOp, MoveOp, RemoveOp, SpawnOp

SurfaceEvent = dict[str, Any]
Listener = Callable[[SurfaceEvent], None]


class RenderSurface(ABC):
    """Abstract rendering target for the animation scheduler."""

    @abstractmethod
    def clear(self):
        """Drop every tile (new game)."""
        pass

    @abstractmethod
    def slide(self, ops: Sequence[MoveOp | MergeOp]):
        """
        Phase 1: start sliding tiles toward their destinations.

        Merge ops slide both sources; values do not change yet.
        """
        pass

    @abstractmethod
    def settle(self, ops: Sequence[AnimationOp]):
        """
        Phase 2: relabel merge survivors, drop consumed tiles, fade in
        spawns and fade out removals.
        """
        pass

    @abstractmethod
    def show_status(self, snapshot: GameSnapshot):
        """Display score and the won / game-over message."""
        pass

    @abstractmethod
    def notify(self, message: str, dismiss_after_ms: int):
        """Show a transient notification that dismisses itself."""
        pass


class NullSurface(RenderSurface):
    """Surface that renders nothing."""

    def clear(self):
        pass

    def slide(self, ops):
        pass

    def settle(self, ops):
        pass

    def show_status(self, snapshot):
        pass

    def notify(self, message, dismiss_after_ms):
        pass


def status_message(snapshot: GameSnapshot) -> str | None:
    """Banner text for a snapshot; a win is shown in preference to game over."""
    if snapshot.won:
        return "You reached 2048!"
    if snapshot.game_over:
        return "Game over! Ready for another try?"
    return None


class RecordingSurface(RenderSurface):
    """
    Surface that records calls as events.

    Event shape (matches the WebSocket messages):
        {"type": "slide" | "settle" | "clear" | "status" | "notify",
         "payload": {...}}

    max_events bounds the kept history (oldest dropped first); None keeps
    everything. Listeners see every event either way.
    """

    def __init__(self, max_events: int | None = None):
        self.events: deque[SurfaceEvent] = deque(maxlen=max_events)
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def clear(self):
        self._emit("clear", {})

    def slide(self, ops):
        self._emit("slide", {"ops": [op.to_dict() for op in ops]})

    def settle(self, ops):
        payload = {
            "merged": [op.to_dict() for op in ops if isinstance(op, MergeOp)],
            "spawned": [op.to_dict() for op in ops if isinstance(op, SpawnOp)],
            "removed": [op.to_dict() for op in ops if isinstance(op, RemoveOp)],
        }
        self._emit("settle", payload)

    def show_status(self, snapshot):
        self._emit("status", {
            "score": snapshot.score,
            "won": snapshot.won,
            "game_over": snapshot.game_over,
            "message": status_message(snapshot),
        })

    def notify(self, message, dismiss_after_ms):
        self._emit("notify", {"message": message, "dismiss_after_ms": dismiss_after_ms})

    def event_types(self) -> list[str]:
        return [event["type"] for event in self.events]

    def _emit(self, event_type: str, payload: dict[str, Any]):
        event = {"type": event_type, "payload": payload}
        self.events.append(event)
        for listener in list(self._listeners):
            listener(event)
