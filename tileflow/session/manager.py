"""
Session Manager - Creates and tracks game client sessions.

LIFECYCLE:
1. Browser opens the page -> session created (in memory only)
2. New game / moves are forwarded to the session's GameClient
3. Session ended, or idle past the configured limit -> removed,
   identities discarded

There is no persistence: game history lives on the rules service.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging
import time
import uuid

from ..animation.surface import RecordingSurface
from ..config import ClientConfig
from ..transport.source import HttpSnapshotSource, SnapshotSource
from .client import GameClient

logger = logging.getLogger(__name__)

SourceFactory = Callable[[], SnapshotSource]

# Recent surface events kept per session for inspection; listeners get all of them
EVENT_HISTORY = 32


@dataclass
class Session:
    """An in-memory client session."""
    session_id: str
    client: GameClient
    surface: RecordingSurface
    created_at: float
    last_active: float = field(default_factory=time.time)

    def touch(self):
        self.last_active = time.time()

    def idle_for(self, now: float | None = None) -> float:
        return (now if now is not None else time.time()) - self.last_active


class SessionManager:
    """
    Registry of client sessions.

    Each session gets its own snapshot source, surface, tracker and
    scheduler; nothing is shared between sessions.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        source_factory: SourceFactory | None = None,
    ):
        self.config = config or ClientConfig()
        self._source_factory = source_factory or self._http_source
        self._sessions: dict[str, Session] = {}

    def create_session(self) -> Session:
        surface = RecordingSurface(max_events=EVENT_HISTORY)
        client = GameClient(self._source_factory(), surface, self.config)
        now = time.time()
        session = Session(
            session_id=str(uuid.uuid4()),
            client=client,
            surface=surface,
            created_at=now,
            last_active=now,
        )
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Remove a session. Returns False if it did not exist."""
        session = self._sessions.pop(session_id, None)
        if not session:
            return False
        session.client.scheduler.abandon()
        close = getattr(session.client.source, "close", None)
        if close:
            close()
        return True

    def list_active_sessions(self) -> list[str]:
        return list(self._sessions)

    def cleanup_stale_sessions(self, max_idle_seconds: float | None = None) -> list[str]:
        """
        End sessions idle for longer than max_idle_seconds.

        Defaults to the configured session_idle_s.
        """
        limit = self.config.session_idle_s if max_idle_seconds is None else max_idle_seconds
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if session.idle_for(now) > limit
        ]
        for sid in stale:
            self.end_session(sid)
        if stale:
            logger.info("Ended %d idle session(s)", len(stale))
        return stale

    def _http_source(self) -> SnapshotSource:
        return HttpSnapshotSource(self.config.rules_url, timeout=self.config.http_timeout)
