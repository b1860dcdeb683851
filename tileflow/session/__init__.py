"""
Session Module - Client-side game sessions.

A session represents one browser's view of a game:
- Created when the page connects
- Holds the identity tracker and animation scheduler
- Forwards new-game and move requests to the rules service
- Destroyed when the page goes away

Sessions are EPHEMERAL: the rules service is the source of truth, and a
session can always be rebuilt from its current snapshot.
"""

from .client import GameClient, TransitionResult
from .manager import EVENT_HISTORY, Session, SessionManager

__all__ = [
    "GameClient",
    "TransitionResult",
    "Session",
    "SessionManager",
    "EVENT_HISTORY",
]
