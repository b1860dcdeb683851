"""
Transport Module - Requests to the remote rules service.

Sources return validated snapshots or raise TransportError; a failed
round trip never changes client state.
"""

from .source import (
    HttpSnapshotSource,
    ScriptedSnapshotSource,
    SnapshotSource,
    TransportError,
)

__all__ = [
    "HttpSnapshotSource",
    "ScriptedSnapshotSource",
    "SnapshotSource",
    "TransportError",
]
