"""
Snapshot Sources - Round trips to the rules service.

The rules service owns the game: it validates moves, merges, scores and
spawns. A source only asks for a transition and hands back the validated
snapshot that results.

Rules service endpoints:
    GET  /api/new-game   Start a new game
    POST /api/move       {"direction": "up" | "down" | "left" | "right"}
    GET  /api/state      Current game

Implementations:
- HttpSnapshotSource: requests-based client for the service
- ScriptedSnapshotSource: replays canned responses (tests, demos)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Iterable
import asyncio
import logging

import requests

from ..board.grid import Direction
from ..board.snapshot import GameSnapshot, SnapshotError, parse_snapshot

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """A round trip to the rules service failed; nothing was applied."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SnapshotSource(ABC):
    """Abstract producer of game snapshots."""

    @abstractmethod
    async def new_game(self) -> GameSnapshot:
        """Start a new game and return its first snapshot."""
        pass

    @abstractmethod
    async def move(self, direction: Direction) -> GameSnapshot:
        """Apply one move and return the resulting snapshot."""
        pass

    @abstractmethod
    async def state(self) -> GameSnapshot:
        """Return the current snapshot without changing anything."""
        pass


class HttpSnapshotSource(SnapshotSource):
    """
    Client for the rules service over HTTP.

    Blocking requests calls run in a worker thread so the event loop keeps
    observing input while a round trip is pending.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    async def new_game(self) -> GameSnapshot:
        return await asyncio.to_thread(self._request, "GET", "/api/new-game")

    async def move(self, direction: Direction) -> GameSnapshot:
        return await asyncio.to_thread(
            self._request, "POST", "/api/move", {"direction": direction.value}
        )

    async def state(self) -> GameSnapshot:
        return await asyncio.to_thread(self._request, "GET", "/api/state")

    def close(self):
        self.session.close()

    def _request(self, method: str, path: str, body: dict[str, Any] | None = None) -> GameSnapshot:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if not response.ok:
            raise TransportError(
                f"{method} {path} returned {response.status_code}: {response.text.strip()[:200]}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned invalid JSON") from e

        try:
            return parse_snapshot(payload)
        except SnapshotError as e:
            logger.warning("Rejected snapshot from %s: %s", path, e.details or e)
            raise TransportError(f"{method} {path} returned a malformed snapshot: {e}") from e


class ScriptedSnapshotSource(SnapshotSource):
    """
    Source that replays a fixed script.

    Each entry is a GameSnapshot, a raw payload dict (validated on use) or
    an exception instance to raise. Every call consumes one entry.
    """

    def __init__(self, script: Iterable[GameSnapshot | dict | Exception] = ()):
        self._script: deque = deque(script)
        self.calls: list[tuple[str, str | None]] = []

    def push(self, *entries: GameSnapshot | dict | Exception):
        self._script.extend(entries)

    @property
    def remaining(self) -> int:
        return len(self._script)

    async def new_game(self) -> GameSnapshot:
        self.calls.append(("new_game", None))
        return await self._next()

    async def move(self, direction: Direction) -> GameSnapshot:
        self.calls.append(("move", direction.value))
        return await self._next()

    async def state(self) -> GameSnapshot:
        self.calls.append(("state", None))
        return await self._next()

    async def _next(self) -> GameSnapshot:
        await asyncio.sleep(0)
        if not self._script:
            raise TransportError("script exhausted")
        entry = self._script.popleft()
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, GameSnapshot):
            return entry
        try:
            return parse_snapshot(entry)
        except SnapshotError as e:
            raise TransportError(f"malformed snapshot: {e}") from e
